"""Metric recording helpers."""

from __future__ import annotations

from fleetmatch.observability.logger import get_logger

logger = get_logger("metrics")


def log_gateway_call(
    provider: str,
    model: str,
    attempts: int,
    latency_ms: float,
    degraded: bool,
) -> None:
    logger.info(
        "gateway_metrics",
        provider=provider,
        model=model,
        attempts=attempts,
        latency_ms=round(latency_ms, 2),
        degraded=degraded,
    )


def log_ranking_metrics(
    use_case: str,
    items_in: int,
    top_scores: list[float],
) -> None:
    logger.info(
        "ranking_metrics",
        use_case=use_case,
        items_in=items_in,
        top_scores=[round(s, 2) for s in top_scores[:5]],
    )


def log_eligibility_metrics(
    item_id: str,
    jurisdiction: str,
    approved: list[str],
    sources: dict[str, str],
    gateway_used: bool,
) -> None:
    logger.info(
        "eligibility_metrics",
        item_id=item_id,
        jurisdiction=jurisdiction,
        approved=approved,
        sources=sources,
        gateway_used=gateway_used,
    )


def log_latency(trace_id: str, stage: str, duration_ms: float) -> None:
    logger.info(
        "latency",
        trace_id=trace_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )
