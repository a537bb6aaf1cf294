#!/usr/bin/env python3
"""
Scoring Test Script

Tests:
1. Skill token matching (normalization, bidirectional substring)
2. Each score factor in isolation
3. Minimum-score floor and the breakdown discrepancy it causes
4. Score bounds and monotonicity in matched required skills

No database or API key needed.
Run: python scripts/test_scoring.py  (or: pytest scripts/test_scoring.py)
"""
import sys
sys.path.insert(0, '.')

from placement_matching.core.config import ScoringWeights, Settings
from placement_matching.schemas.schemas import Candidate, Job
from placement_matching.services.scoring_service import ScoreCalculator, round_half_up
from placement_matching.services.skill_set import dedupe, matches, normalize, normalize_all


def make_candidate(**fields) -> Candidate:
    fields.setdefault("id", "s1")
    return Candidate(**fields)


def make_job(required=None, preferred=None) -> Job:
    return Job(id="j1", title="Backend Developer",
               required_skills=required or [], preferred_skills=preferred or [])


calculator = ScoreCalculator()


def test_skill_matching():
    """Test normalization and fuzzy skill equality."""
    print("\n[1] Testing skill matching...")

    assert normalize("  React.JS ") == "react.js"
    assert normalize(None) == ""

    # Equal, and substring in both directions
    assert matches("Python", "python")
    assert matches("React", "React.js")
    assert matches("react.js", "REACT")
    assert not matches("Java", "Rust")

    # Blank tokens never match anything
    assert not matches("", "Python")
    assert not matches("   ", "")

    assert normalize_all(["SQL", "sql ", "", "  "]) == {"sql"}
    assert dedupe(["Python", "python", " SQL", "", "Docker"]) == ["Python", "SQL", "Docker"]

    print("    ✅ Skill matching tests passed!")


def test_job_skills_are_deduplicated():
    """Required skills are de-duplicated case-insensitively."""
    job = make_job(required=["Python", "python ", "", "SQL"])
    assert job.required_skills == ["Python", "SQL"]


def test_required_and_preferred_skills():
    """Test the skill components."""
    print("\n[2] Testing skill components...")

    candidate = make_candidate(skills=["Python", "Docker"])
    data = calculator.calculate(candidate, make_job(
        required=["Python", "SQL"], preferred=["Docker", "AWS", "Kafka"]
    ))
    print(f"    Required 1/2: {data.breakdown['required_skills']:.2f} (expected: 15.00)")
    assert data.breakdown["required_skills"] == 15.0
    assert abs(data.breakdown["preferred_skills"] - 10 / 3) < 1e-9
    assert data.skills_matched == ["Python"]
    assert data.skills_missing == ["SQL"]

    # A job without requirements gets half credit, not zero
    data = calculator.calculate(candidate, make_job())
    assert data.breakdown["required_skills"] == 15.0
    assert data.breakdown["preferred_skills"] == 5.0
    assert data.floor_applied is False

    print("    ✅ Skill component tests passed!")


def test_project_tags_count_as_skills():
    candidate = make_candidate(projects=[{"title": "Shop", "tags": ["React.js"]}])
    data = calculator.calculate(candidate, make_job(required=["React"]))
    assert data.skills_matched == ["React"]


def test_project_relevance():
    """Relevant count, verified bonus and tag diversity."""
    print("\n[3] Testing project relevance...")

    candidate = make_candidate(projects=[
        {"title": "Dashboard", "tags": ["React.js", "Redux"], "verified": True},
        {"title": "API", "tags": ["node"]},
        {"title": "Mockups", "tags": ["Figma"], "verified": True},
    ])
    data = calculator.calculate(candidate, make_job(required=["React", "Node"]))

    # 2 relevant * 4 = 8, 1 verified relevant * 2 = 2, 3 distinct tags = 3
    print(f"    Project score: {data.breakdown['projects']} (expected: 13)")
    assert data.relevant_projects_count == 2
    assert data.breakdown["projects"] == 13.0

    many = make_candidate(projects=[
        {"title": f"P{i}", "tags": ["Python", f"lib{i}"], "verified": True} for i in range(6)
    ])
    data = calculator.calculate(many, make_job(required=["Python"]))
    assert data.breakdown["projects"] == 25.0  # 15 + 5 + 5, all capped

    print("    ✅ Project relevance tests passed!")


def test_readiness_and_growth():
    """Readiness and growth trajectory."""
    print("\n[4] Testing readiness and growth...")
    job = make_job(required=["Python"])

    data = calculator.calculate(make_candidate(readiness_score=50), job)
    assert data.breakdown["readiness"] == 10.0

    rising = make_candidate(readiness_score=80, readiness_history=[
        {"score": 50}, {"score": 60}, {"score": 70}, {"score": 80}
    ])
    assert calculator.calculate(rising, job).breakdown["growth"] == 10.0

    slight = make_candidate(readiness_history=[{"score": 40}, {"score": 44}, {"score": 46}])
    assert calculator.calculate(slight, job).breakdown["growth"] == 3.0

    falling = make_candidate(readiness_score=60, readiness_history=[
        {"score": 80}, {"score": 70}, {"score": 60}
    ])
    assert calculator.calculate(falling, job).breakdown["growth"] == 0.0

    # No history: high performers get fixed credit
    assert calculator.calculate(make_candidate(readiness_score=75), job).breakdown["growth"] == 5.0
    assert calculator.calculate(make_candidate(readiness_score=69), job).breakdown["growth"] == 0.0

    print("    ✅ Readiness and growth tests passed!")


def test_cgpa_certifications_consistency():
    print("\n[5] Testing CGPA, certifications and coding streaks...")
    job = make_job(required=["Python"])

    assert calculator.calculate(make_candidate(cgpa=8.0), job).breakdown["cgpa"] == 2.4
    assert calculator.calculate(make_candidate(), job).breakdown["cgpa"] == 1.5
    # Out-of-range CGPA counts as not provided
    assert make_candidate(cgpa=42).cgpa is None

    certs = [{"name": f"Cert {i}", "verified": True} for i in range(5)]
    certs.append({"name": "Pending", "verified": False})
    assert calculator.calculate(make_candidate(certifications=certs), job).breakdown["certifications"] == 2.0
    one_cert = make_candidate(certifications=[{"name": "AWS", "verified": True}])
    assert calculator.calculate(one_cert, job).breakdown["certifications"] == 0.5

    streaks = make_candidate(coding_streaks={"leetcode": 40, "github": 60})
    assert calculator.calculate(streaks, job).breakdown["consistency"] == 3.0
    long_streak = make_candidate(coding_streaks={"leetcode": 200, "github": 0})
    assert calculator.calculate(long_streak, job).breakdown["consistency"] == 5.0

    print("    ✅ CGPA / certification / consistency tests passed!")


def test_full_match_without_extras():
    """No CGPA, no projects, no certs, every required skill matched."""
    print("\n[6] Testing full skill match with an empty profile...")

    candidate = make_candidate(skills=["Python", "SQL"])
    data = calculator.calculate(candidate, make_job(required=["Python", "SQL"]))

    assert data.breakdown["required_skills"] == 30.0
    assert data.breakdown["cgpa"] == 1.5
    assert data.breakdown["certifications"] == 0.0
    assert data.breakdown["projects"] == 0.0

    # 30 + 5 (no preferred skills) + 1.5 = 36.5 before the floor
    assert sum(data.breakdown.values()) == 36.5

    # Floor: 25 + 30/30 * 25 = 50, so the breakdown no longer sums to the total
    print(f"    Breakdown sum: 36.5, total score: {data.total_score} (expected: 50)")
    assert data.total_score == 50
    assert data.floor_applied is True

    print("    ✅ Full match tests passed!")


def test_floor_for_half_qualified_candidates():
    job = make_job(required=["Python", "SQL", "Docker", "AWS"])

    half = calculator.calculate(make_candidate(skills=["Python", "SQL"]), job)
    # 25 + 15/30 * 25 = 37.5 -> 38
    assert half.total_score == 38
    assert half.total_score >= 25

    quarter = calculator.calculate(make_candidate(skills=["Python"]), job)
    assert quarter.floor_applied is False
    # 7.5 + 5 + 1.5
    assert quarter.total_score == 14


def test_floor_does_not_lower_strong_scores():
    candidate = make_candidate(skills=["Python"], readiness_score=100, cgpa=10,
                               coding_streaks={"leetcode": 100})
    data = calculator.calculate(candidate, make_job(required=["Python"]))
    # 30 + 5 + 20 + 5 (no history, readiness >= 70) + 3 + 5 = 68
    assert data.total_score == 68
    assert data.floor_applied is False


def test_score_is_bounded():
    """Totals are clamped to 0-100."""
    print("\n[7] Testing score bounds...")

    maxed = make_candidate(
        skills=["Python", "SQL", "Docker"],
        projects=[{"title": f"P{i}", "tags": ["Python", f"t{i}"], "verified": True} for i in range(6)],
        certifications=[{"name": f"C{i}", "verified": True} for i in range(5)],
        cgpa=10,
        readiness_score=100,
        readiness_history=[{"score": 0}, {"score": 0}, {"score": 100}],
        coding_streaks={"leetcode": 365, "github": 365},
    )
    data = calculator.calculate(maxed, make_job(required=["Python", "SQL"], preferred=["Docker"]))
    print(f"    Breakdown sum: {sum(data.breakdown.values())}, total: {data.total_score} (expected: 100)")
    assert sum(data.breakdown.values()) == 105.0
    assert data.total_score == 100

    empty = calculator.calculate(make_candidate(), make_job(required=["Python"]))
    assert 0 <= empty.total_score <= 100

    print("    ✅ Score bound tests passed!")


def test_more_required_skills_never_lower_the_score():
    """Monotonicity in matched required skills."""
    print("\n[8] Testing monotonicity...")

    required = ["Python", "SQL", "Docker", "AWS", "Kafka"]
    job = make_job(required=required, preferred=["Redis"])
    base = dict(
        projects=[{"title": "ETL", "tags": ["Kafka", "Spark"], "verified": True}],
        readiness_score=55,
        cgpa=7.2,
        coding_streaks={"leetcode": 12},
    )

    previous = -1
    for count in range(len(required) + 1):
        candidate = make_candidate(skills=required[:count], **base)
        score = calculator.calculate(candidate, job).total_score
        print(f"    {count} required skills -> {score}")
        assert score >= previous
        previous = score

    print("    ✅ Monotonicity tests passed!")


def test_custom_weights():
    weights = ScoringWeights(required_skills=60, floor_base=0, floor_span=0)
    data = ScoreCalculator(weights).calculate(
        make_candidate(skills=["Python"]), make_job(required=["Python", "SQL"])
    )
    assert data.breakdown["required_skills"] == 30.0


def test_settings_fields():
    """Every setting is read somewhere; weights are nested under matching."""
    assert set(Settings.model_fields) == {
        "mongodb_uri", "mongodb_db",
        "llm_api_key", "llm_base_url", "llm_model",
        "log_level", "log_json",
        "matching",
    }
    assert Settings(_env_file=None, llm_api_key="  ").llm_enabled is False


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(37.5) == 38
    assert round_half_up(37.49) == 37


def main():
    print("=" * 60)
    print("SCORING TEST")
    print("=" * 60)

    test_skill_matching()
    test_job_skills_are_deduplicated()
    test_required_and_preferred_skills()
    test_project_tags_count_as_skills()
    test_project_relevance()
    test_readiness_and_growth()
    test_cgpa_certifications_consistency()
    test_full_match_without_extras()
    test_floor_for_half_qualified_candidates()
    test_floor_does_not_lower_strong_scores()
    test_score_is_bounded()
    test_more_required_skills_never_lower_the_score()
    test_custom_weights()
    test_settings_fields()
    test_round_half_up()

    print("\n" + "=" * 60)
    print("✅ ALL SCORING TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    main()
