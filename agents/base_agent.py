"""Base agent class with common generation and prompt utilities."""

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from assembly.context import AssembledPrompt, AssemblyContext
from assembly.engine import PromptAssembler
from config.exceptions import LLMError, LLMTimeoutError, PlanModeError
from config.settings import Settings
from models.enums import GeneratorType
from tools.generation import (
    GenerationOptions,
    GenerationRequest,
    GenerationResponse,
    GenerationService,
)

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"


@lru_cache(maxsize=32)
def _read_prompt_file(path: str) -> str:
    """Read and cache a prompt file by absolute path string."""
    return Path(path).read_text(encoding="utf-8")


class BaseAgent:
    """Base class for the model-driven phases of the workflow."""

    def __init__(
        self,
        generation: GenerationService,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.generation = generation
        self.assembler = assembler or PromptAssembler(settings=self.settings)

    def _load_prompt(self, template_name: str) -> str:
        """Load a prompt template from config/prompts/ (cached after first read).

        Args:
            template_name: Filename without extension, e.g. 'plan'.

        Returns:
            The prompt template text.
        """
        path = _PROMPTS_DIR / f"{template_name}.md"
        if not path.exists():
            raise FileNotFoundError(f"Prompt template not found: {path}")
        return _read_prompt_file(str(path))

    def _extract_section(self, template: str, section_header: str) -> str:
        """Extract a specific section from a prompt template.

        Sections are delimited by '## ' headers in the markdown.
        """
        lines = template.split("\n")
        capturing = False
        result = []
        for line in lines:
            if line.strip().startswith("## ") and section_header in line:
                capturing = True
                continue
            elif line.strip().startswith("## ") and capturing:
                break
            elif capturing:
                result.append(line)
        return "\n".join(result).strip()

    def _section(self, template: str, name: str, generator_type: GeneratorType) -> str:
        """Generator-specific section ``name (type)``, else the shared ``name``."""
        return (
            self._extract_section(template, f"{name} ({generator_type.value})")
            or self._extract_section(template, name)
        )

    async def _assemble(self, ctx: AssemblyContext) -> AssembledPrompt:
        return await self.assembler.assemble(ctx)

    async def _generate(
        self,
        request_type: str,
        prompt: AssembledPrompt,
        options: GenerationOptions,
        use_privacy_mode: bool = False,
    ) -> GenerationResponse:
        """Send an assembled prompt to the generation service.

        Raises:
            LLMTimeoutError: If the call exceeds generation_timeout_seconds.
            LLMError: If the service fails.
        """
        request = GenerationRequest(
            request_type=request_type,
            system=prompt.system,
            messages=prompt.messages,
            options=options,
            tools=prompt.tools,
            use_privacy_mode=use_privacy_mode,
        )
        timeout = self.settings.generation_timeout_seconds
        logger.debug("Generation call: type=%s, messages=%d", request_type, len(prompt.messages))
        try:
            if timeout:
                return await asyncio.wait_for(self.generation.generate(request), timeout=timeout)
            return await self.generation.generate(request)
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(f"{request_type} timed out after {timeout}s") from e
        except PlanModeError:
            raise
        except Exception as e:
            raise LLMError(f"{request_type} failed: {e}") from e
