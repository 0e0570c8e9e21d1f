"""Pytest configuration and shared prompt fixtures"""

import sys
from pathlib import Path

import pytest

# Add project root to path for prompt_engine imports (tests run without install too)
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from prompt_engine.models import Prompt, build_corpus


@pytest.fixture
def sample_prompts():
    """
    Three unrelated prompts, one per category.

    Term placement matters for ranking tests:
    - "testing" only in test-1 (title + description)
    - "readme" only in test-2 (tags + content)
    - "fix" only in test-3 (tags + content); "bug" nowhere
    """
    return build_corpus([
        {
            "id": "test-1",
            "title": "Testing Framework",
            "description": "A comprehensive testing framework",
            "category": "testing",
            "tags": ["test", "unit", "integration"],
            "author": "Test Author",
            "content": "Write tests for your code. Include unit tests and integration tests.",
        },
        {
            "id": "test-2",
            "title": "Documentation Guide",
            "description": "How to write great documentation",
            "category": "documentation",
            "tags": ["docs", "readme", "guide"],
            "author": "Test Author",
            "content": "Good documentation is essential. Write clear README files.",
        },
        {
            "id": "test-3",
            "title": "Debug Helper",
            "description": "Debug your code effectively",
            "category": "debugging",
            "tags": ["debug", "fix", "troubleshoot"],
            "author": "Other Author",
            "featured": True,
            "content": "Use debugger to find bugs. Fix issues systematically.",
        },
    ])


@pytest.fixture
def idea_wizard_corpus():
    """Two versions of the same prompt plus an unrelated one"""
    return build_corpus([
        Prompt(
            id="idea-wizard",
            title="The Idea Wizard",
            description="Generate 30 improvement ideas and distill to the best 5",
            category="ideation",
            tags=["brainstorming"],
            content=(
                "Come up with your very best ideas for improving this project. "
                "First generate a list of 30 ideas, then critically evaluate each one "
                "and keep only the ones that pass your scrutiny."
            ),
        ),
        Prompt(
            id="idea-wizard-v2",
            title="The Idea Wizard",
            description="Brainstorm improvement ideas, evaluate them and keep the best",
            category="ideation",
            tags=["brainstorming", "evaluation"],
            content=(
                "Brainstorm many ideas for improving the project. Score every idea "
                "against clear criteria and implement the strongest five right away."
            ),
        ),
        Prompt(
            id="readme-reviser",
            title="The README Reviser",
            description="Update the README to match the current code",
            category="documentation",
            tags=["documentation"],
            content=(
                "Review the README against the current implementation and revise "
                "outdated sections, installation steps and usage examples."
            ),
        ),
    ])
