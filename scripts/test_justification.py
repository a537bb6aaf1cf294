#!/usr/bin/env python3
"""
Justification and Skill Extraction Test Script

Tests:
1. Template reasons for each score tier
2. LLM retries with exponential backoff, then template fallback
3. Enrichment deadline
4. Job description -> skills (LLM, keywords, word frequency)

Uses a scripted LLM, no API key needed.
Run: python scripts/test_justification.py
"""
import sys
sys.path.insert(0, '.')

from fakes import FakeLLMClient
from placement_matching.core.config import MatchingConfig
from placement_matching.schemas.schemas import Candidate, Job, MatchData
from placement_matching.services.justification_service import (
    JustificationService,
    build_prompt,
    fallback_reason,
    match_strength,
)
from placement_matching.services.ranking_service import ScoredCandidate
from placement_matching.services.skill_extraction_service import (
    SkillExtractionService,
    frequent_words,
    keyword_skills,
)

JOB = Job(id="j1", title="Backend Developer", required_skills=["Python", "SQL", "Docker"])


def make_match(score, matched, missing, projects=2) -> MatchData:
    return MatchData(total_score=score, breakdown={}, skills_matched=matched,
                     skills_missing=missing, relevant_projects_count=projects)


def scored(student_id, score=70) -> ScoredCandidate:
    return ScoredCandidate(
        Candidate(id=student_id, name=f"Student {student_id}", skills=["Python"], readiness_score=60),
        make_match(score, ["Python"], ["SQL", "Docker"])
    )


def no_sleep(seconds):
    pass


# ============================================================
# TEMPLATE REASONS
# ============================================================

def test_fallback_tiers():
    """Each score band has its own template."""
    print("\n[1] Testing template reasons...")
    candidate = Candidate(id="s1", readiness_score=85)

    strong = fallback_reason(candidate, JOB, make_match(85, ["Python", "SQL"], ["Docker"]))
    print(f"    Strong: {strong}")
    assert strong == (
        "Strong match with 2/3 required skills and 2 relevant projects. "
        "Demonstrates consistent growth with 85% readiness score. "
        "May benefit from developing: Docker."
    )

    complete = fallback_reason(candidate, JOB, make_match(92, ["Python", "SQL", "Docker"], []))
    assert complete.endswith("Excellent skill coverage.")

    good = fallback_reason(candidate, JOB, make_match(65, ["Python", "SQL"], ["Docker"]))
    print(f"    Good: {good}")
    assert good == (
        "Good match with solid foundation in Python, SQL. "
        "Has 2 relevant projects and 85% readiness. Could strengthen: Docker."
    )

    potential = fallback_reason(candidate, JOB, make_match(30, ["Python"], ["SQL", "Docker", "AWS"]))
    print(f"    Potential: {potential}")
    assert potential == (
        "Potential match with 1 matching skills and growth potential. "
        "Would benefit from gaining experience in SQL, Docker to better align with role requirements."
    )

    # Never empty, whatever the data
    empty = fallback_reason(Candidate(id="s2"), Job(id="j2"), make_match(0, [], [], projects=0))
    assert empty

    print("    ✅ Template reason tests passed!")


def test_match_strength_and_prompt():
    assert match_strength(80) == "strong"
    assert match_strength(79) == "good"
    assert match_strength(59) == "potential"

    candidate = Candidate(id="s1", name="Asha", skills=["Python"], cgpa=8.5)
    prompt = build_prompt(candidate, JOB, make_match(65, ["Python"], ["SQL", "Docker"]))
    assert "good match" in prompt
    assert "Name: Asha" in prompt
    assert "Skills Missing: SQL, Docker" in prompt
    assert "CGPA: 8.5" in prompt


# ============================================================
# LLM CALLS
# ============================================================

def test_retry_with_backoff():
    """Two failures, then an answer on the third attempt."""
    print("\n[2] Testing retries...")

    sleeps = []
    llm = FakeLLMClient(reply="Great backend profile.", fail_times=2)
    service = JustificationService(
        llm, MatchingConfig(justification_max_retries=2, justification_backoff=0.5), sleep=sleeps.append
    )
    s = scored("s1")
    reason = service.generate(s.candidate, JOB, s.match_data)

    print(f"    Calls: {llm.calls}, backoff: {sleeps}")
    assert reason == "Great backend profile."
    assert llm.calls == 3
    assert sleeps == [0.5, 1.0]

    print("    ✅ Retry tests passed!")


def test_retries_exhausted_falls_back():
    sleeps = []
    llm = FakeLLMClient(always_fail=True)
    service = JustificationService(llm, MatchingConfig(justification_max_retries=2), sleep=sleeps.append)
    s = scored("s1", score=30)

    reason = service.generate(s.candidate, JOB, s.match_data)
    assert reason.startswith("Potential match with 1 matching skills")
    assert llm.calls == 3
    assert len(sleeps) == 2


def test_empty_reply_falls_back():
    service = JustificationService(FakeLLMClient(reply=""), MatchingConfig(justification_max_retries=0))
    s = scored("s1", score=65)
    assert service.generate(s.candidate, JOB, s.match_data).startswith("Good match")


def test_enrich_counts_degraded():
    """Everything falls back when the LLM is down, nothing raises."""
    print("\n[3] Testing enrichment...")

    top = [scored(f"s{i}") for i in range(4)]

    ok = JustificationService(FakeLLMClient(reply="Fits well."), sleep=no_sleep).enrich(JOB, top)
    assert ok.reasons == {f"s{i}": "Fits well." for i in range(4)}
    assert ok.degraded == 0
    assert ok.enriched == 4

    down = JustificationService(
        FakeLLMClient(always_fail=True), MatchingConfig(justification_max_retries=1), sleep=no_sleep
    ).enrich(JOB, top)
    print(f"    LLM down: {down.degraded} degraded of {len(down.reasons)}")
    assert down.degraded == 4
    assert down.enriched == 0
    assert all(r.startswith("Good match") for r in down.reasons.values())

    print("    ✅ Enrichment tests passed!")


def test_enrich_without_llm():
    result = JustificationService(llm_client=None).enrich(JOB, [scored("s1"), scored("s2")])
    assert result.degraded == 2
    assert set(result.reasons) == {"s1", "s2"}
    assert JustificationService().enrich(JOB, []).reasons == {}


def test_enrichment_deadline():
    """Calls still running at the deadline get the template."""
    llm = FakeLLMClient(reply="Too late.", delay=1.0)
    config = MatchingConfig(enrichment_deadline=0.05, enrichment_workers=2)
    result = JustificationService(llm, config, sleep=no_sleep).enrich(JOB, [scored("s1"), scored("s2")])

    assert result.degraded == 2
    assert all(r != "Too late." for r in result.reasons.values())


# ============================================================
# SKILL EXTRACTION
# ============================================================

def test_extract_with_llm():
    print("\n[4] Testing skill extraction...")

    reply = '{"requiredSkills": ["Python", "SQL", "python"], "preferredSkills": ["Docker", ""]}'
    result = SkillExtractionService(FakeLLMClient(reply=reply)).extract("Backend role, Python and SQL")
    print(f"    LLM: {result.required_skills} / {result.preferred_skills}")
    assert result.source == "llm"
    assert result.required_skills == ["Python", "SQL"]
    assert result.preferred_skills == ["Docker"]


def test_extract_with_keywords():
    extractor = SkillExtractionService(llm_client=None)
    result = extractor.extract("We need Python and PostgreSQL with Docker.")
    print(f"    Keywords: {result.required_skills}")
    assert result.source == "keywords"
    assert result.required_skills == ["Python", "PostgreSQL", "Docker"]

    # Short names only count as whole words
    assert keyword_skills("Experience with C and Go") == ["C", "Go"]
    assert keyword_skills("Cloud computing and good documentation") == []
    assert keyword_skills("Modern C++ and C#") == ["C++", "C#"]


def test_invalid_llm_json_falls_back_to_keywords():
    result = SkillExtractionService(FakeLLMClient(reply="not json")).extract("Strong React skills")
    assert result.source == "keywords"
    assert result.required_skills == ["React"]

    failing = SkillExtractionService(FakeLLMClient(always_fail=True)).extract("Kubernetes operator")
    assert failing.source == "keywords"
    assert failing.required_skills == ["Kubernetes"]


def test_extract_with_word_frequency():
    description = (
        "Looking for someone passionate about gardening. "
        "Gardening knowledge and plant care. Plant lovers welcome."
    )
    result = SkillExtractionService().extract(description)
    print(f"    Frequency: {result.required_skills}")
    assert result.source == "frequency"
    assert result.required_skills == [
        "Gardening", "Plant", "Looking", "Someone", "Passionate", "About", "Knowledge", "Care"
    ]
    assert frequent_words("the and of", limit=3) == []


def test_extract_empty_description():
    result = SkillExtractionService(FakeLLMClient()).extract("   ")
    assert result.source == "empty"
    assert result.required_skills == []
    assert result.preferred_skills == []

    print("    ✅ Skill extraction tests passed!")


def main():
    print("=" * 60)
    print("JUSTIFICATION / SKILL EXTRACTION TEST")
    print("=" * 60)

    test_fallback_tiers()
    test_match_strength_and_prompt()
    test_retry_with_backoff()
    test_retries_exhausted_falls_back()
    test_empty_reply_falls_back()
    test_enrich_counts_degraded()
    test_enrich_without_llm()
    test_enrichment_deadline()
    test_extract_with_llm()
    test_extract_with_keywords()
    test_invalid_llm_json_falls_back_to_keywords()
    test_extract_with_word_frequency()
    test_extract_empty_description()

    print("\n" + "=" * 60)
    print("✅ ALL JUSTIFICATION TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
