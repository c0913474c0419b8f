"""Oracle port: question proposals, answer scoring and closing reports."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config import EVAL_KEY, QUESTION_KEY, REPORT_KEY, LlmRoute, bind_model, get_model, load_app_registry
from interview_session.errors import OracleError
from llm_gateway import LlmGatewayError, call

from .prompts import (
    EVALUATION_SYSTEM,
    QUESTION_SYSTEM,
    REPORT_SYSTEM,
    build_evaluation_task,
    build_question_task,
    build_report_task,
)
from .types import (
    Evaluation,
    EvaluationContext,
    FinalReport,
    ProposedQuestion,
    QuestionContext,
    ReportContext,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ORACLE_SCHEMAS: Dict[str, Type[BaseModel]] = {
    QUESTION_KEY: ProposedQuestion,
    EVAL_KEY: Evaluation,
    REPORT_KEY: FinalReport,
}


class Oracle(Protocol):
    def propose_question(self, ctx: QuestionContext) -> ProposedQuestion: ...

    def score_answer(self, ctx: EvaluationContext) -> Evaluation: ...

    def write_report(self, ctx: ReportContext) -> FinalReport: ...


class ModelOracle:
    """Oracle backed by callables bound in the model registry.

    Each bound callable receives ``task``, ``system``, ``inputs`` and sampling
    options as keyword arguments and returns a dict, a JSON string or a pydantic
    model. Whatever comes back is validated strictly; partial or out-of-range
    values raise :class:`OracleError` rather than being patched up.
    """

    def propose_question(self, ctx: QuestionContext) -> ProposedQuestion:
        return self._invoke(
            QUESTION_KEY,
            ProposedQuestion,
            task=build_question_task(ctx),
            system=QUESTION_SYSTEM,
            inputs=ctx.model_dump(mode="json"),
            temperature=0.7,
            max_tokens=500,
        )

    def score_answer(self, ctx: EvaluationContext) -> Evaluation:
        return self._invoke(
            EVAL_KEY,
            Evaluation,
            task=build_evaluation_task(ctx),
            system=EVALUATION_SYSTEM,
            inputs=ctx.model_dump(mode="json"),
            temperature=0.3,
            max_tokens=600,
        )

    def write_report(self, ctx: ReportContext) -> FinalReport:
        return self._invoke(
            REPORT_KEY,
            FinalReport,
            task=build_report_task(ctx),
            system=REPORT_SYSTEM,
            inputs=ctx.model_dump(mode="json"),
            temperature=0.5,
            max_tokens=1000,
        )

    def _invoke(self, key: str, schema: Type[T], **kwargs: Any) -> T:
        try:
            model = get_model(key)
        except KeyError as exc:
            raise OracleError(f"oracle '{key}' is not configured") from exc
        try:
            raw = model(**kwargs)
        except LlmGatewayError as exc:
            logger.error("Oracle call failed key=%s: %s", key, exc)
            raise OracleError(f"oracle '{key}' failed: {exc}") from exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("Oracle call raised key=%s", key)
            raise OracleError(f"oracle '{key}' failed: {exc}") from exc
        return _parse(key, schema, raw)


def _parse(key: str, schema: Type[T], raw: Any) -> T:
    try:
        if isinstance(raw, schema):
            return raw
        if isinstance(raw, BaseModel):
            return schema.model_validate(raw.model_dump())
        if isinstance(raw, (str, bytes)):
            return schema.model_validate_json(raw)
        return schema.model_validate(raw)
    except (ValidationError, json.JSONDecodeError) as exc:
        logger.warning("Oracle output rejected key=%s: %s", key, exc)
        raise OracleError(f"oracle '{key}' returned malformed output") from exc


def gateway_model(route: LlmRoute, schema: Type[BaseModel]) -> Callable[..., BaseModel]:
    """Adapt an LLM route to the registry calling convention."""

    def _run(*, task: str, system: str = "", temperature: float = 0.0, max_tokens: int = 500, **_: Any) -> BaseModel:
        return call(
            task,
            schema,
            cfg=route,
            system=system or None,
            options={"temperature": temperature, "max_tokens": max_tokens},
        )

    return _run


def bind_gateway_models(config_path: Path) -> None:
    """Bind every oracle registry key to the LLM route named in ``config_path``."""

    registry = load_app_registry(config_path, ORACLE_SCHEMAS)
    for key, (route, schema) in registry.items():
        bind_model(key, gateway_model(route, schema))
        logger.info("Bound oracle key=%s route=%s model=%s", key, route.name, route.model)


__all__ = ["ModelOracle", "ORACLE_SCHEMAS", "Oracle", "bind_gateway_models", "gateway_model"]
