"""
Skill Extraction Service - Job description -> required / preferred skills.

Used when a recruiter only pasted a free-text description. The LLM is asked
for strict JSON; when it is unavailable or answers garbage we fall back to
(1) a keyword scan against common tech skills, then (2) the most frequent
non-stopword words of the description.
"""

import logging
import re
from collections import Counter
from typing import List, Optional

from placement_matching.schemas.schemas import ExtractedSkills
from placement_matching.services.llm_client import LLMClient, get_llm_client
from placement_matching.services.skill_set import dedupe

logger = logging.getLogger(__name__)


COMMON_SKILLS = [
    "JavaScript", "TypeScript", "Python", "Java", "C", "C++", "C#", "Go", "Rust", "PHP",
    "React", "Angular", "Vue", "Next.js", "Node.js", "Express", "Django", "Flask", "Spring",
    "MongoDB", "PostgreSQL", "MySQL", "Redis", "SQL", "AWS", "Azure", "GCP", "Docker", "Kubernetes",
    "HTML", "CSS", "Tailwind", "GraphQL", "REST", "Microservices", "Machine Learning", "AI", "NLP",
]

STOPWORDS = {
    "the", "and", "or", "to", "of", "in", "for", "with", "a", "an", "on", "at", "by", "is", "are",
    "as", "from", "this", "that", "will", "be", "we", "you", "your", "our", "their", "they", "it",
    "role", "job", "position", "candidate", "experience", "skills", "required", "preferred",
}

SYSTEM_PROMPT = "You are a strict information extraction system. Respond only in JSON."

FREQUENCY_LIMIT = 8


def keyword_skills(description: str) -> List[str]:
    """
    Common skills mentioned in the text.

    Short names (C, Go, AI...) must appear as whole words so that "C"
    does not match every description.
    """
    lower = description.lower()
    found = []
    for skill in COMMON_SKILLS:
        pattern = r"(?<![\w+#.])" + re.escape(skill.lower()) + r"(?![\w+#])"
        if re.search(pattern, lower):
            found.append(skill)
    return found


def frequent_words(description: str, limit: int = FREQUENCY_LIMIT) -> List[str]:
    """Most frequent non-stopword words, capitalized."""
    words = re.sub(r"[^a-zA-Z0-9+\s]", " ", description).lower().split()
    counts = Counter(w for w in words if len(w) > 2 and w not in STOPWORDS)
    # most_common keeps first-seen order for ties
    return [word[0].upper() + word[1:] for word, _ in counts.most_common(limit)]


class SkillExtractionService:
    """
    Extracts required and preferred skills from a job description.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client

    def extract(self, description: str) -> ExtractedSkills:
        if not description or not description.strip():
            return ExtractedSkills(source="empty")

        if self.llm_client is not None:
            try:
                return self._extract_with_llm(description)
            except Exception as e:
                logger.warning("LLM skill extraction failed, using keywords: %s", e)

        matched = keyword_skills(description)
        if matched:
            return ExtractedSkills(required_skills=dedupe(matched), source="keywords")

        return ExtractedSkills(required_skills=dedupe(frequent_words(description)), source="frequency")

    def _extract_with_llm(self, description: str) -> ExtractedSkills:
        prompt = (
            'Extract skills from the job description and return a JSON object with keys '
            '"requiredSkills" and "preferredSkills".\n'
            "Only include concrete technical skills, tools, frameworks, languages, or platforms.\n"
            f"Job Description:\n{description}"
        )
        response = self.llm_client.complete(
            SYSTEM_PROMPT, prompt, max_tokens=512, temperature=0.2, json_mode=True
        )
        parsed = self.llm_client.extract_json(response or "{}")
        if not isinstance(parsed, dict):
            raise ValueError("Expected a JSON object")

        required = parsed.get("requiredSkills") or []
        preferred = parsed.get("preferredSkills") or []
        if not isinstance(required, list) or not isinstance(preferred, list):
            raise ValueError("Skill lists must be JSON arrays")

        return ExtractedSkills(
            required_skills=dedupe(str(s) for s in required if s),
            preferred_skills=dedupe(str(s) for s in preferred if s),
            source="llm"
        )


def get_skill_extractor() -> SkillExtractionService:
    """Get skill extraction service instance."""
    return SkillExtractionService(llm_client=get_llm_client())
