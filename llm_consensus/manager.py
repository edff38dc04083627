"""Cached, tiered entrypoints for single and batched consensus questions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence, Tuple, Union

from .cache import ConsensusCache, make_cache_key
from .consensus import BaseStrategy
from .errors import BatchDemuxError
from .orchestrator import Orchestrator
from .routing import TierSelector
from .types import CallRequest, ConsensusResult, OutputSchema
from .utils.cost_tracker import UsageTracker


Question = Union[Tuple[str, str], Mapping[str, Any]]


def temperature_for(complexity: str) -> float:
    if complexity == "creative":
        return 0.3
    if complexity == "precise":
        return 0.05
    return 0.15


def batch_schema(count: int) -> OutputSchema:
    return OutputSchema(
        name="batch_answers",
        schema={
            "type": "object",
            "properties": {"answers": {"type": "array", "minItems": count}},
            "required": ["answers"],
        },
        strict=False,
    )


def split_batch_answer(payload: Any, count: int) -> list[Any]:
    """Positional answers from a batched payload.

    Accepts a bare list, an ``answers`` list, or ``answer_1`` ... ``answer_n`` keys.
    """
    if isinstance(payload, dict) and isinstance(payload.get("answers"), list):
        payload = payload["answers"]

    if isinstance(payload, list):
        if len(payload) < count:
            raise BatchDemuxError(f"Batched answer has {len(payload)} entries, expected {count}")
        return payload[:count]

    if isinstance(payload, dict):
        keys = [f"answer_{i + 1}" for i in range(count)]
        missing = [k for k in keys if k not in payload]
        if missing:
            raise BatchDemuxError(f"Batched answer is missing {missing}")
        return [payload[k] for k in keys]

    raise BatchDemuxError(f"Cannot split batched answer of type {type(payload).__name__}")


def _normalize_questions(questions: Sequence[Question]) -> list[tuple[str, str]]:
    normalized: list[tuple[str, str]] = []
    for item in questions:
        if isinstance(item, Mapping):
            normalized.append((str(item["id"]), str(item["question"])))
        else:
            question_id, text = item
            normalized.append((str(question_id), str(text)))
    ids = [qid for qid, _ in normalized]
    if len(set(ids)) != len(ids):
        raise ValueError("Question ids must be unique within a batch")
    return normalized


class ConsensusManager:
    """Cache in front of the orchestrator, with tier routing per question."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        *,
        cache: ConsensusCache | None = None,
        selector: TierSelector | None = None,
        tracker: UsageTracker | None = None,
        timeout_ms: int = 60_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.timeout_ms = timeout_ms
        self.cache = cache if cache is not None else ConsensusCache()
        self.selector = selector if selector is not None else TierSelector()
        self.tracker = tracker
        self.logger = logger or logging.getLogger("llm_consensus.manager")
        self._inflight: dict[str, asyncio.Task[ConsensusResult]] = {}
        self.reset_stats()

    async def get_consensus(
        self,
        question: str,
        agent: str = "unknown",
        complexity: str = "medium",
        *,
        task_type: str = "",
        system_prompt: str = "",
        output_schema: OutputSchema | None = None,
        strategy: str | BaseStrategy = "voting",
    ) -> ConsensusResult:
        """Cached consensus for one question; a hit dispatches nothing."""
        key = make_cache_key(question, agent)
        cached = self._lookup(key, agent)
        if cached is not None:
            self.logger.info("Cache hit key=%s agent=%s", key, agent)
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._dispatch_single(
                    key,
                    question,
                    agent,
                    complexity,
                    task_type=task_type,
                    system_prompt=system_prompt,
                    output_schema=output_schema,
                    strategy=strategy,
                )
            )
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            self.logger.info("Joining in-flight consensus call key=%s", key)
        # Shielded so a cancelled caller does not cancel the shared dispatch.
        return await asyncio.shield(task)

    async def _dispatch_single(
        self,
        key: str,
        question: str,
        agent: str,
        complexity: str,
        *,
        task_type: str,
        system_prompt: str,
        output_schema: OutputSchema | None,
        strategy: str | BaseStrategy,
    ) -> ConsensusResult:
        profile = self.selector.select_profile(complexity, task_type)
        self.logger.info("New consensus call agent=%s complexity=%s profile=%s key=%s", agent, complexity, profile, key)
        request = CallRequest(
            system_prompt=system_prompt or f"You are assisting the {agent} agent. Answer precisely.",
            user_prompt=question,
            output_schema=output_schema,
            temperature=temperature_for(complexity),
            timeout_ms=self.timeout_ms,
        )
        try:
            result = await self.orchestrator.consensus_call(profile, request, strategy, agent=agent)
        except Exception:
            self.logger.error("Consensus call failed agent=%s key=%s", agent, key)
            raise

        self.cache.put(key, result)
        self._count_dispatch(agent, profile)
        return result

    async def get_consensus_for_multiple(
        self,
        questions: Sequence[Question],
        agent: str = "unknown",
        complexity: str = "medium",
        *,
        task_type: str = "",
        strategy: str | BaseStrategy = "voting",
    ) -> dict[str, ConsensusResult]:
        """Answer several questions with at most one orchestrator round-trip."""
        normalized = _normalize_questions(questions)
        if not normalized:
            return {}

        answered: dict[str, ConsensusResult] = {}
        pending: dict[str, list[str]] = {}
        pending_text: dict[str, str] = {}
        for question_id, text in normalized:
            key = make_cache_key(text, agent)
            if key in pending:
                pending[key].append(question_id)
                continue
            cached = self._lookup(key, agent)
            if cached is not None:
                answered[question_id] = cached
            else:
                pending[key] = [question_id]
                pending_text[key] = text

        if not pending:
            self.logger.info("All %d questions answered from cache agent=%s", len(normalized), agent)
            return {qid: answered[qid] for qid, _ in normalized}

        self.logger.info(
            "Batching consensus questions agent=%s cached=%d uncached=%d", agent, len(answered), len(pending)
        )
        keys = list(pending)
        profile = self.selector.select_profile(complexity, task_type)
        request = CallRequest(
            system_prompt=(
                f"You are answering multiple questions for the {agent} agent. Answer each clearly. "
                f'Respond with a JSON object {{"answers": [...]}} holding exactly {len(keys)} answers '
                "in question order."
            ),
            user_prompt="\n\n".join(f"{i + 1}. {pending_text[key]}" for i, key in enumerate(keys)),
            output_schema=batch_schema(len(keys)),
            temperature=temperature_for(complexity),
            timeout_ms=self.timeout_ms,
        )
        try:
            combined = await self.orchestrator.consensus_call(profile, request, strategy, agent=agent)
            answers = split_batch_answer(combined.winning_payload, len(keys))
        except Exception:
            self.logger.error("Batch consensus failed agent=%s questions=%d", agent, len(keys))
            raise
        self._count_dispatch(agent, profile)

        for position, (key, answer) in enumerate(zip(keys, answers), start=1):
            result = ConsensusResult(
                winning_payload=answer,
                agreement_ratio=combined.agreement_ratio,
                participant_count=combined.participant_count,
                success_count=combined.success_count,
                strategy_used=combined.strategy_used,
                explanation=f"{combined.explanation} (batched answer {position}/{len(keys)})",
                details={"batch_position": position, "batch_size": len(keys)},
                call_results=combined.call_results,
            )
            self.cache.put(key, result)
            for question_id in pending[key]:
                answered[question_id] = result

        return {qid: answered[qid] for qid, _ in normalized}

    def _lookup(self, key: str, agent: str) -> ConsensusResult | None:
        result = self.cache.get(key)
        hit = result is not None
        self._stats["cache_hits" if hit else "cache_misses"] += 1
        if self.tracker is not None:
            self.tracker.record_cache_lookup(hit=hit, agent=agent)
        return result

    def _count_dispatch(self, agent: str, profile: str) -> None:
        self._stats["dispatches"] += 1
        per_agent = self._stats["by_agent"].setdefault(agent, {"dispatches": 0, "profiles": {}})
        per_agent["dispatches"] += 1
        per_agent["profiles"][profile] = per_agent["profiles"].get(profile, 0) + 1

    def stats(self) -> dict[str, Any]:
        lookups = self._stats["cache_hits"] + self._stats["cache_misses"]
        return {
            "lookups": lookups,
            "cache_hits": self._stats["cache_hits"],
            "cache_misses": self._stats["cache_misses"],
            "hit_rate": self._stats["cache_hits"] / lookups if lookups else 0.0,
            "dispatches": self._stats["dispatches"],
            "cached_entries": len(self.cache),
            "by_agent": self._stats["by_agent"],
        }

    def clear_cache(self) -> int:
        return self.cache.clear()

    def reset_stats(self) -> None:
        self._stats: dict[str, Any] = {"cache_hits": 0, "cache_misses": 0, "dispatches": 0, "by_agent": {}}
