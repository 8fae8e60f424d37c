"""
Prompt templates for content analysis and improvement.
"""

from contentflow.models import AIAnalysisResult

ANALYSIS_SYSTEM_PROMPT = (
    "You are a content analysis expert. Always respond with valid JSON only, "
    "no markdown formatting, no explanations."
)

IMPROVEMENT_SYSTEM_PROMPT = (
    "You are a professional content editor. You improve content while preserving "
    "meaning. Always respond with only the improved content, no explanations or formatting."
)

ANALYSIS_PROMPT = """Analyze the following content and return ONLY a valid JSON object with no markdown, no explanations, just pure JSON:

Title: {title}
Language: {language}
Content: {body}

Return a JSON object with this exact structure:
{{
  "sentiment": "positive" | "neutral" | "negative",
  "topics": ["topic1", "topic2", ...],
  "readabilityScore": number (0-100),
  "wordCount": number,
  "qualityScore": number (0-100),
  "summary": "brief summary of the content",
  "strengths": ["strength1", "strength2", ...],
  "weaknesses": ["weakness1", "weakness2", ...]
}}

Only return the JSON object, nothing else."""

IMPROVEMENT_PROMPT = """You are a professional editor. Your task is to improve the following content while preserving its original meaning, intent, and tone.

Original Content:
Title: {title}
Body: {body}

Analysis Insights:
- Current quality score: {quality_score}/100
- Readability score: {readability_score}/100
- Sentiment: {sentiment}
{weaknesses}
{strengths}

Instructions:
1. Improve clarity, structure, and overall impact
2. Fix any grammatical or stylistic issues
3. Enhance readability without changing the core message
4. Do NOT add new ideas or change the meaning
5. Do NOT include any explanations or markdown formatting
6. Return ONLY the improved content text, nothing else

Improved content:"""


def build_analysis_prompt(title: str, language: str, body: str) -> str:
    return ANALYSIS_PROMPT.format(title=title, language=language, body=body)


def build_improvement_prompt(title: str, body: str, analysis: AIAnalysisResult) -> str:
    """Rewrite prompt steered by the analysis' weaknesses and strengths."""
    weaknesses = (
        f"Areas to improve: {', '.join(analysis.weaknesses)}."
        if analysis.weaknesses else ""
    )
    strengths = (
        f"Preserve these strengths: {', '.join(analysis.strengths)}."
        if analysis.strengths else ""
    )
    return IMPROVEMENT_PROMPT.format(
        title=title,
        body=body,
        quality_score=analysis.quality_score,
        readability_score=analysis.readability_score,
        sentiment=analysis.sentiment.value,
        weaknesses=weaknesses,
        strengths=strengths,
    )
