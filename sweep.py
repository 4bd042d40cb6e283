"""Run one prompt at several temperatures and ask the model to compare the answers."""
from __future__ import annotations

import concurrent.futures as cf
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from console_loader import Loader
from responses_client import ResponsesClient

logger = logging.getLogger(__name__)

SWEEP_TEMPERATURES = (0.0, 0.7, 1.2)
SWEEP_MAX_OUTPUT_TOKENS = 500
ANALYSIS_TEMPERATURE = 0.0
ANALYSIS_MAX_OUTPUT_TOKENS = 700
UNSUPPORTED_TEMPERATURE_MARKER = "Unsupported parameter: 'temperature'"

ANALYSIS_INSTRUCTIONS = textwrap.dedent(
    """
    Ты сравниваешь ответы одной и той же LLM при разных температурах.
    Нужен короткий отчет на русском языке.

    Формат:
    1) Точность: сравни ответы между собой, отметь, где больше риск фактических ошибок.
    2) Креативность: укажи, какой ответ самый творческий и почему.
    3) Разнообразие: оцени насколько ответы отличаются по структуре/формулировкам.
    4) Для каких задач лучше:
    - temperature=0
    - temperature=0.7
    - temperature=1.2

    Пиши конкретно и коротко.
    """
).strip()


@dataclass(frozen=True)
class TemperatureResult:
    temperature: float
    response: str


@dataclass
class TurnOutcome:
    prompt: str
    results: List[TemperatureResult] = field(default_factory=list)
    analysis: Optional[str] = None
    unsupported_temperature: bool = False


def is_unsupported_temperature_error(text: str) -> bool:
    return UNSUPPORTED_TEMPERATURE_MARKER.lower() in text.lower()


def run_sweep(
    client: ResponsesClient,
    prompt: str,
    temperatures: Sequence[float] = SWEEP_TEMPERATURES,
    parallel: bool = False,
) -> List[TemperatureResult]:
    """One call per temperature; results come back in ``temperatures`` order."""
    if not parallel:
        return [
            TemperatureResult(
                temperature=t,
                response=client.request(prompt, temperature=t, max_output_tokens=SWEEP_MAX_OUTPUT_TOKENS),
            )
            for t in temperatures
        ]
    label = "Запрос к модели (temperature=" + ", ".join(str(t) for t in temperatures) + ")"
    with Loader(label):
        ex = cf.ThreadPoolExecutor(max_workers=max(len(temperatures), 1))
        try:
            futs = [
                ex.submit(
                    client.request,
                    prompt,
                    temperature=t,
                    max_output_tokens=SWEEP_MAX_OUTPUT_TOKENS,
                    show_progress=False,
                )
                for t in temperatures
            ]
            responses = [fut.result() for fut in futs]
        except BaseException:
            # Ctrl-C must not wait out the in-flight requests
            ex.shutdown(wait=False, cancel_futures=True)
            raise
        ex.shutdown()
    return [TemperatureResult(temperature=t, response=r) for t, r in zip(temperatures, responses)]


def build_analysis_input(prompt: str, results: Sequence[TemperatureResult]) -> str:
    packed = "".join(f"temperature={r.temperature}\n{r.response}\n---\n" for r in results)
    return f"Исходный запрос:\n{prompt}\n\nОтветы:\n{packed}"


def request_analysis(client: ResponsesClient, prompt: str, results: Sequence[TemperatureResult]) -> str:
    return client.request(
        build_analysis_input(prompt, results),
        instructions=ANALYSIS_INSTRUCTIONS,
        temperature=ANALYSIS_TEMPERATURE,
        max_output_tokens=ANALYSIS_MAX_OUTPUT_TOKENS,
    )


def run_turn(
    client: ResponsesClient,
    prompt: str,
    parallel: bool = False,
    on_results: Optional[Callable[[List[TemperatureResult]], None]] = None,
) -> TurnOutcome:
    """Sweep, then the analysis call unless the model rejected ``temperature``.

    ``on_results`` sees the sweep answers before the analysis request goes out.
    """
    outcome = TurnOutcome(prompt=prompt)
    outcome.results = run_sweep(client, prompt, parallel=parallel)
    if any(is_unsupported_temperature_error(r.response) for r in outcome.results):
        logger.info("Model %s rejected the temperature parameter", client.model)
        outcome.unsupported_temperature = True
        return outcome
    if on_results is not None:
        on_results(outcome.results)
    outcome.analysis = request_analysis(client, prompt, outcome.results)
    return outcome
