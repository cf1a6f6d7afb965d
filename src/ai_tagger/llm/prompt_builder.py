"""
Prompt builder for tag analysis requests.

Responsible for:
- Loading and rendering Jinja2 templates (system prompt + one per mode)
- Applying the output-language directive to generate-style prompts
- Rejecting matching prompts without a candidate vocabulary
- Screening custom instructions for injection-style phrases

Content is expected to be truncated already; the builder renders it
verbatim.
"""

import re
from pathlib import Path
from typing import Optional, Sequence

import structlog
from jinja2 import Environment, FileSystemLoader

from ai_tagger.exceptions import ConfigurationError, PromptInjectionError
from ai_tagger.llm.languages import is_default_language, language_display_name
from ai_tagger.models.enums import TaggingMode


logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

MODE_TEMPLATES = {
    TaggingMode.PREDEFINED_TAGS: "predefined.txt",
    TaggingMode.EXISTING_TAGS: "existing.txt",
    TaggingMode.GENERATE_NEW: "generate.txt",
    TaggingMode.CUSTOM: "custom.txt",
}

INJECTION_PATTERNS = [
    r"ignore\s+(previous|all|above)\s+instructions",
    r"disregard\s+(previous|all|above)",
    r"system\s*:\s*you\s+are",
    r"<\s*/?\s*system\s*>",
    r"forget\s+(all\s+)?previous\s+instructions",
]
_INJECTION_RE = [re.compile(p, re.IGNORECASE) for p in INJECTION_PATTERNS]


def screen_custom_instructions(instructions: str) -> None:
    """
    Reject instruction text that tries to override the system prompt.

    Raises:
        PromptInjectionError: a known injection phrase was found
    """
    for pattern in _INJECTION_RE:
        match = pattern.search(instructions)
        if match:
            logger.warning("Rejected custom instructions", pattern=pattern.pattern)
            raise PromptInjectionError(
                "Custom instructions contain a disallowed phrase",
                details={"matched": match.group(0)},
            )


class PromptBuilder:
    """
    Build prompts for one analysis call.

    ``build`` handles one non-hybrid mode; the engine calls it twice for
    hybrid requests (generate half, then matching half).
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates
                (defaults to the templates shipped with the package)
        """
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False  # Prompts, not HTML
        )

        self.system_template = self.jinja_env.get_template("system_prompt.txt")
        self.mode_templates = {
            mode: self.jinja_env.get_template(name) for mode, name in MODE_TEMPLATES.items()
        }
        logger.info("Loaded prompt templates", templates_dir=str(self.templates_dir))

    def build_system_prompt(self) -> str:
        """Render the static system prompt."""
        return self.system_template.render().strip()

    def build(
        self,
        mode: TaggingMode,
        content: str,
        candidate_tags: Sequence[str] = (),
        max_tags: int = 5,
        language: Optional[str] = None,
        custom_instructions: Optional[str] = None,
    ) -> str:
        """
        Render the user prompt for a single (non-hybrid) mode.

        Args:
            mode: PREDEFINED_TAGS, EXISTING_TAGS, GENERATE_NEW or CUSTOM
            content: Already truncated document content
            candidate_tags: Vocabulary for matching modes (ignored otherwise)
            max_tags: Tag quota stated in the prompt
            language: Output language code for generate-style prompts
            custom_instructions: Instruction block for CUSTOM mode

        Returns:
            Rendered prompt

        Raises:
            ConfigurationError: hybrid mode passed directly, empty vocabulary
                for a matching mode, or CUSTOM without instructions
            PromptInjectionError: custom instructions failed screening
        """
        if mode.is_hybrid:
            raise ConfigurationError(
                "Hybrid modes are built as separate generate and matching prompts",
                details={"mode": mode.value},
            )

        variables: dict = {"content": content, "max_tags": max_tags}

        if mode.is_matching:
            if not candidate_tags:
                raise ConfigurationError(
                    "A candidate tag vocabulary is required for this mode",
                    details={"mode": mode.value},
                )
            # Matching prompts never translate: tags are selected verbatim
            variables["candidate_tags"] = list(candidate_tags)
        else:
            if mode == TaggingMode.CUSTOM:
                if not custom_instructions or not custom_instructions.strip():
                    raise ConfigurationError(
                        "Custom mode requires custom instructions",
                        details={"mode": mode.value},
                    )
                screen_custom_instructions(custom_instructions)
                variables["custom_instructions"] = custom_instructions.strip()

            variables["language_name"] = (
                None if is_default_language(language) else language_display_name(language)
            )

        prompt = self.mode_templates[mode].render(**variables).strip()
        logger.debug(
            "Built prompt",
            mode=mode.value,
            prompt_chars=len(prompt),
            candidates=len(candidate_tags) if mode.is_matching else 0,
        )
        return prompt
