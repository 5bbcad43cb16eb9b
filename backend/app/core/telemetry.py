"""OpenTelemetry 계측 설정

Backend 전역에서 사용하는 OTel 초기화 로직과 투표 도메인 메트릭을 제공합니다.
초기화 전에는 no-op tracer/meter 를 반환하므로 테스트에서는 별도 설정이 필요 없습니다.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.semconv.resource import ResourceAttributes

from app.core.config import get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

T = TypeVar("T")


def init_telemetry(
    service_name: str,
    service_version: str = "0.1.0",
    otlp_endpoint: str | None = None,
) -> tuple[trace.Tracer, metrics.Meter]:
    """OpenTelemetry 초기화

    Args:
        service_name: 서비스 이름 (예: "bookcrush-backend")
        service_version: 서비스 버전
        otlp_endpoint: OTLP 수신 엔드포인트 (기본값: 설정의 otel_exporter_otlp_endpoint)

    Returns:
        (Tracer, Meter) 튜플
    """
    settings = get_settings()
    endpoint = otlp_endpoint or settings.otel_exporter_otlp_endpoint

    # Resource 설정 (서비스 메타데이터)
    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: settings.app_env,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    # Meter Provider 설정
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=10000,  # 10초마다 export
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    tracer = trace.get_tracer(service_name, service_version)
    meter = metrics.get_meter(service_name, service_version)

    logger.info(
        "Telemetry initialized: service=%s, endpoint=%s",
        service_name,
        endpoint,
    )

    return tracer, meter


def instrument_fastapi(app: FastAPI) -> None:
    """FastAPI 자동 계측"""
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


# ===========================================
# 투표 도메인 메트릭
# ===========================================


class BookCrushMetrics:
    """추천/투표 커스텀 메트릭"""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self.suggestions_created = self.meter.create_counter(
            name="bookcrush_suggestions_created_total",
            description="생성된 책 추천 수",
        )
        self.votes_cast = self.meter.create_counter(
            name="bookcrush_votes_cast_total",
            description="투표 수",
        )
        self.votes_retracted = self.meter.create_counter(
            name="bookcrush_votes_retracted_total",
            description="취소된 투표 수",
        )
        self.voting_cycles_closed = self.meter.create_counter(
            name="bookcrush_voting_cycles_closed_total",
            description="종료된 투표 사이클 수 (outcome=winners/expired)",
        )
        self.closeout_duration = self.meter.create_histogram(
            name="bookcrush_voting_closeout_duration_seconds",
            description="투표 사이클 종료(집계+상태 전이) 처리 시간",
            unit="s",
        )


# ===========================================
# 싱글톤 인스턴스 및 접근자
# ===========================================

_tracer: trace.Tracer | None = None
_meter: metrics.Meter | None = None
_metrics: BookCrushMetrics | None = None
_initialized: bool = False


def get_tracer() -> trace.Tracer:
    """Tracer 인스턴스 반환 (초기화 안 된 경우 noop tracer 반환)"""
    if _tracer is None:
        return trace.get_tracer("bookcrush-noop")
    return _tracer


def get_bookcrush_metrics() -> BookCrushMetrics | None:
    """도메인 메트릭 인스턴스 반환 (초기화 안 된 경우 None)"""
    return _metrics


def setup_telemetry(service_name: str, service_version: str = "0.1.0") -> None:
    """전역 telemetry 설정 (애플리케이션 시작 시 호출)"""
    global _tracer, _meter, _metrics, _initialized

    if _initialized:
        logger.warning("Telemetry already initialized, skipping")
        return

    _tracer, _meter = init_telemetry(service_name, service_version)
    _metrics = BookCrushMetrics(_meter)
    _initialized = True


# ===========================================
# 유틸리티 데코레이터 및 컨텍스트 매니저
# ===========================================


def traced_function(
    span_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """비동기 함수를 OTel span으로 래핑하는 데코레이터

    Usage:
        @traced_function("voting.end_cycle")
        async def end_voting_cycle(...):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = span_name or func.__name__

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            tracer = get_tracer()
            with tracer.start_as_current_span(name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    return await func(*args, **kwargs)
                except ValueError as e:
                    # 서비스 에러 코드 (PERMISSION_DENIED 등)는 span 속성으로만 남김
                    span.set_attribute("bookcrush.error_code", str(e))
                    raise
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    raise

        return async_wrapper  # type: ignore

    return decorator


@contextmanager
def timed_operation():
    """시간 측정 컨텍스트 매니저

    Usage:
        with timed_operation() as timer:
            ...
        # timer.duration에 경과 시간 저장됨
    """

    class Timer:
        def __init__(self):
            self.start_time = time.perf_counter()
            self.duration: float = 0.0

    timer = Timer()
    try:
        yield timer
    finally:
        timer.duration = time.perf_counter() - timer.start_time
