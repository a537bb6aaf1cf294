"""
Placement Matching Engine
Ranks the student population against a recruiter's job posting.

Architecture:
- MongoDB: Student profiles and job postings (match lists are stored on the job)
- Matching engine: Coverage analysis, scoring, filtering, ranking
- LLM (OpenAI-compatible): Match justifications and JD skill extraction only
"""

__version__ = "1.0.0"
