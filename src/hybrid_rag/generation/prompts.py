"""
Prompt text for answer synthesis.

The synthesis prompt is part of the pipeline's external contract: the
numbered context blocks, the instruction to cite with [n] and the JSON
shape are what citation mapping and parsing rely on. Changing the
wording changes answer quality, so it lives here as data, not inline.

Industry variants are a lookup table, not branching code. Adding an
industry means adding an entry to INDUSTRY_PROMPTS.
"""

from langchain_core.prompts import PromptTemplate
from pydantic import BaseModel, Field


class IndustryPrompt(BaseModel):
    """Domain framing prepended to the synthesis prompt."""

    system_prompt: str
    focus: list[str] = Field(default_factory=list, description="What answers in this domain should pay attention to")


INDUSTRY_PROMPTS: dict[str, IndustryPrompt] = {
    "general": IndustryPrompt(
        system_prompt=(
            "You are a business document analysis expert with broad knowledge "
            "of various document types and business processes."
        ),
    ),
    "real_estate": IndustryPrompt(
        system_prompt=(
            "You are a real estate document analysis expert with deep knowledge of "
            "property transactions, real estate law, and industry compliance "
            "requirements including Fair Housing, Title Insurance, and Escrow regulations."
        ),
        focus=["parties", "purchase price", "closing dates", "contingencies", "required disclosures"],
    ),
    "medical": IndustryPrompt(
        system_prompt=(
            "You are a medical document analysis expert with expertise in HIPAA "
            "compliance, clinical terminology, and healthcare documentation standards."
        ),
        focus=["diagnoses", "medications", "lab results", "treatment plans", "allergies"],
    ),
    "legal": IndustryPrompt(
        system_prompt=(
            "You are a legal document analysis expert with expertise in contract law, "
            "litigation support, and legal risk assessment."
        ),
        focus=["parties", "obligations", "deadlines", "governing law", "penalties"],
    ),
    "logistics": IndustryPrompt(
        system_prompt=(
            "You are a logistics and shipping document expert with knowledge of "
            "international trade, customs regulations, and supply chain documentation."
        ),
        focus=["shipper and consignee", "HS codes", "incoterms", "ports", "declared values"],
    ),
    "finance": IndustryPrompt(
        system_prompt=(
            "You are a financial document analysis expert with expertise in fraud "
            "detection, regulatory compliance, and financial reporting."
        ),
        focus=["amounts", "account details", "reporting periods", "regulatory requirements"],
    ),
}


# Literal braces in the JSON example are doubled for PromptTemplate.
SYNTHESIS_TEMPLATE = """{preamble}You are a precise document analysis AI. Answer the query using ONLY the provided context.

QUERY: {query}

CONTEXT:
{context}

CRITICAL INSTRUCTIONS:
1. CITATIONS: Use [1], [2], etc. to cite sources for EVERY claim
2. CONFIDENCE: Provide a confidence score (0.0-1.0) for your answer
3. SELF-CRITIQUE: End with a brief self-critique identifying potential weaknesses or uncertainties in your answer
4. NO HALLUCINATION: If the context doesn't contain the answer, explicitly state this

OUTPUT FORMAT (JSON):
{{
  "answer": "Your detailed answer with inline citations [1][2]...",
  "confidence": 0.0-1.0,
  "citations": [
    {{
      "number": 1,
      "text": "Exact quote from context",
      "reasoning": "Why this supports the answer"
    }}
  ],
  "selfCritique": "Honest assessment of answer quality and limitations"
}}

Provide your response as valid JSON only."""

SYNTHESIS_PROMPT = PromptTemplate(
    input_variables=["preamble", "query", "context"],
    template=SYNTHESIS_TEMPLATE,
)


def industry_preamble(industry: str) -> str:
    """Leading paragraph for an industry, or '' for the general case."""
    variant = INDUSTRY_PROMPTS[industry]
    if industry == "general":
        return ""

    lines = [variant.system_prompt]
    if variant.focus:
        lines.append(f"Pay particular attention to: {', '.join(variant.focus)}.")
    return "\n".join(lines) + "\n\n"
