"""Reasoning oracle: pydantic-ai agents with structured output."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Any, Protocol

from pydantic_ai import Agent, providers
from pydantic_ai.models import Model

from backporter.core.config import LLMConfig
from backporter.core.log import logger
from backporter.model.types import (
    BackportFeasibility,
    ConflictResolution,
    DiffAnalysis,
)


@contextmanager
def inject_provider_params(llm_config: LLMConfig):
    """Temporarily patch pydantic-ai's infer_provider so providers are
    built with the configured api_key and base_url.

    Args:
        llm_config: LLM configuration with api_key, base_url

    Yields:
        None
    """
    kwargs = {}
    if llm_config.api_key:
        kwargs['api_key'] = llm_config.api_key
    if llm_config.base_url:
        kwargs['base_url'] = llm_config.base_url

    if not kwargs:
        yield
        return

    original_infer_provider = providers.infer_provider

    def patched_infer_provider(provider_name: str):
        provider_class = providers.infer_provider_class(provider_name)
        return provider_class(**kwargs)

    try:
        providers.infer_provider = patched_infer_provider
        yield
    finally:
        providers.infer_provider = original_infer_provider


def _bullets(items: list[str]) -> str:
    return "; ".join(items) if items else "none"


class Oracle(Protocol):
    """Reasoning operations used by the workflow and the executor."""

    async def analyze_diff(
        self, diff: str, title: str, description: str
    ) -> DiffAnalysis:
        ...

    async def analyze_feasibility(
        self,
        diff: str,
        analysis: DiffAnalysis,
        source_branch: str,
        target_branch: str,
        target_context: str,
    ) -> BackportFeasibility:
        ...

    async def resolve_conflict(
        self, marked: str, theirs: str, ours: str, intent: str
    ) -> ConflictResolution:
        ...

    async def describe_backport(
        self,
        pr_number: int,
        title: str,
        target_branch: str,
        analysis: DiffAnalysis,
        feasibility: BackportFeasibility,
        resolved_conflicts: int,
    ) -> str:
        ...


class AgentOracle:
    """Oracle backed by one pydantic-ai Agent per question.

    Every call is bounded by llm.timeout. Nothing here retries on
    transport errors; llm.retries only covers output validation.
    """

    def __init__(
        self,
        llm_config: LLMConfig,
        prompts: dict[str, str],
        model: Model | str | None = None,
    ):
        """
        Args:
            llm_config: Model name, credentials, timeout, retries
            prompts: The prompts.oracle section of the configuration
            model: Overrides llm_config.model (a Model instance in tests)
        """
        self.llm_config = llm_config
        self.prompts = prompts
        self.model = model or llm_config.model

    def _create_agent(self, output_type: type, system_key: str) -> Agent:
        with inject_provider_params(self.llm_config):
            return Agent(
                self.model,
                output_type=output_type,
                system_prompt=self.prompts[system_key],
                retries=self.llm_config.retries,
            )

    async def _ask(
        self, name: str, output_type: type, **fields: Any
    ) -> Any:
        prompt = self.prompts[name].format(**fields)
        agent = self._create_agent(output_type, f"{name}_system")

        with logger.span("oracle {name}", name=name, prompt_length=len(prompt)):
            try:
                result = await asyncio.wait_for(
                    agent.run(prompt), timeout=self.llm_config.timeout
                )
            except TimeoutError:
                logger.error(
                    "Oracle call timed out",
                    name=name,
                    timeout=self.llm_config.timeout,
                )
                raise
            except Exception as e:
                logger.error(
                    "Oracle call failed", name=name, _exc_info=e
                )
                raise

        logger.debug("Oracle {name} answered", name=name)
        return result.output

    async def analyze_diff(
        self, diff: str, title: str, description: str
    ) -> DiffAnalysis:
        return await self._ask(
            "analyze_diff",
            DiffAnalysis,
            title=title,
            description=description or "(none)",
            diff=diff,
        )

    async def analyze_feasibility(
        self,
        diff: str,
        analysis: DiffAnalysis,
        source_branch: str,
        target_branch: str,
        target_context: str,
    ) -> BackportFeasibility:
        return await self._ask(
            "feasibility",
            BackportFeasibility,
            source_branch=source_branch,
            target_branch=target_branch,
            summary=analysis.summary,
            intent=analysis.intent,
            complexity=analysis.complexity,
            dependencies=_bullets(analysis.dependencies),
            target_context=target_context,
            diff=diff,
        )

    async def resolve_conflict(
        self, marked: str, theirs: str, ours: str, intent: str
    ) -> ConflictResolution:
        return await self._ask(
            "resolve",
            ConflictResolution,
            intent=intent,
            theirs=theirs,
            ours=ours,
            content=marked,
        )

    async def describe_backport(
        self,
        pr_number: int,
        title: str,
        target_branch: str,
        analysis: DiffAnalysis,
        feasibility: BackportFeasibility,
        resolved_conflicts: int,
    ) -> str:
        return await self._ask(
            "describe",
            str,
            pr_number=pr_number,
            title=title,
            target_branch=target_branch,
            summary=analysis.summary,
            intent=analysis.intent,
            change_category=analysis.change_category,
            risks=_bullets(analysis.risks),
            confidence=f"{feasibility.confidence:.2f}",
            recommendations=_bullets(feasibility.recommendations),
            resolved_conflicts=resolved_conflicts,
        )
