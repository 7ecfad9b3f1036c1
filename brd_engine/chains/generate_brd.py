"""LLM chain for generating a Business Requirements Document from project documents."""

from brd_engine.core.config import get_settings
from brd_engine.core.corpus import aggregate_documents_content
from brd_engine.core.llm import complete
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


SYSTEM_PROMPT = (
    "You are a senior business analyst. You write clear, complete and professional "
    "Business Requirements Documents grounded strictly in the source material provided."
)

# ruff: noqa: E501
BRD_PROMPT_TEMPLATE = """Analyze the following documents and create a comprehensive Business Requirements Document (BRD).

Documents:
{documents_content}

Generate a detailed BRD with these sections:

1. EXECUTIVE SUMMARY
   - Brief overview of the project
   - Key objectives and expected outcomes

2. BUSINESS OBJECTIVES
   - List the main business goals
   - Expected business value

3. STAKEHOLDER ANALYSIS
   - Create a table with columns: Name/Role, Responsibilities, Level of Involvement
   - Include all stakeholders mentioned or implied in the documents

4. FUNCTIONAL REQUIREMENTS
   - List all functional requirements in numbered format
   - Each requirement should have: ID, Description, Priority (High/Medium/Low)
   - Format as: FR-001: [Description] - Priority: [High/Medium/Low]

5. NON-FUNCTIONAL REQUIREMENTS
   - Performance requirements
   - Security requirements
   - Scalability requirements
   - Usability requirements

6. ASSUMPTIONS AND CONSTRAINTS
   - List assumptions made
   - List constraints and limitations

7. SUCCESS CRITERIA
   - Define measurable success metrics
   - Acceptance criteria

Format the output in markdown with proper headings, tables, and bullet points. Be thorough and professional."""


def build_brd_prompt(documents_content: str) -> str:
    """Fill the BRD instructions with the aggregated document text."""
    return BRD_PROMPT_TEMPLATE.format(documents_content=documents_content)


def generate_business_requirement_document(project_id: str, user_id: str) -> str:
    """
    Generate BRD markdown for a project.

    Args:
        project_id: Project UUID
        user_id: Owning user

    Returns:
        BRD as markdown

    Raises:
        NoDocumentsError: If the project has no processed documents (no model call is made)
        GenerationServiceError: If the generation call fails
    """
    settings = get_settings()

    documents_content = aggregate_documents_content(project_id, user_id)
    prompt = build_brd_prompt(documents_content)

    logger.info(
        f"Generating BRD for project {project_id} from {len(documents_content)} chars",
        extra={"project_id": str(project_id), "model": settings.BRD_MODEL},
    )

    return complete(
        messages=[{"role": "user", "content": prompt}],
        system_prompt=SYSTEM_PROMPT,
        model=settings.BRD_MODEL,
        max_tokens=settings.BRD_MAX_TOKENS,
    )
