"""Dependency injection container for the evaluation service."""

from __future__ import annotations

from pathlib import Path

from dependency_injector import containers, providers

from .core import (
    CombinerConfig,
    DimensionScorer,
    EvaluationOrchestrator,
    ExtractorConfig,
    ResumeTextFormatter,
    ScoreCombiner,
    StructuredExtractor,
    YOECalculator,
    YOEConfig,
)
from .inference import HTTPInferenceClient
from .mailbox import (
    CancellationToken,
    ControlMonitor,
    FileKeyValueStore,
    JobEvaluationMonitor,
    Mailbox,
    MailboxClient,
    MonitorService,
    NewJobWatcher,
    ResumeCleaningMonitor,
    ResumeTextMonitor,
)
from .store import JobStore

DEFAULT_HOME = Path.home() / ".fitscreening"

DEFAULT_SETTINGS: dict = {
    "storage": {
        "jobs_dir": str(DEFAULT_HOME / "jobs"),
        "mailbox_dir": str(DEFAULT_HOME / "mailbox"),
    },
    "inference": {"endpoint": None, "api_key": None, "timeout": 60.0},
    "polling": {"work_interval": 0.5, "control_interval": 1.0, "notification_interval": 2.0},
    "client": {"timeout": 120.0, "poll_interval": 0.5},
}


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration(default=DEFAULT_SETTINGS)

    key_value_store = providers.Singleton(FileKeyValueStore, root=config.storage.mailbox_dir)
    mailbox = providers.Singleton(Mailbox, store=key_value_store)
    job_store = providers.Singleton(JobStore, root=config.storage.jobs_dir)

    inference = providers.Singleton(
        HTTPInferenceClient,
        endpoint=config.inference.endpoint,
        api_key=config.inference.api_key,
        timeout=config.inference.timeout,
    )

    extractor = providers.Singleton(StructuredExtractor, inference=inference)
    formatter = providers.Singleton(ResumeTextFormatter, inference=inference)
    yoe_calculator = providers.Singleton(YOECalculator, inference=inference)
    scorer = providers.Singleton(DimensionScorer, inference=inference)
    combiner = providers.Singleton(ScoreCombiner)

    orchestrator = providers.Singleton(
        EvaluationOrchestrator,
        extractor=extractor,
        yoe=yoe_calculator,
        scorer=scorer,
        combiner=combiner,
        store=job_store,
        mailbox=mailbox,
    )

    token = providers.Singleton(CancellationToken)

    job_monitor = providers.Factory(
        JobEvaluationMonitor,
        mailbox=mailbox,
        token=token,
        evaluator=orchestrator,
        interval=config.polling.work_interval,
    )
    cleaning_monitor = providers.Factory(
        ResumeCleaningMonitor,
        mailbox=mailbox,
        token=token,
        extractor=extractor,
        interval=config.polling.work_interval,
    )
    text_monitor = providers.Factory(
        ResumeTextMonitor,
        mailbox=mailbox,
        token=token,
        formatter=formatter,
        interval=config.polling.work_interval,
    )
    control_monitor = providers.Factory(
        ControlMonitor,
        mailbox=mailbox,
        token=token,
        interval=config.polling.control_interval,
    )

    monitor_service = providers.Factory(
        MonitorService,
        monitors=providers.List(job_monitor, cleaning_monitor, text_monitor, control_monitor),
        token=token,
        mailbox=mailbox,
    )

    client = providers.Factory(
        MailboxClient,
        mailbox=mailbox,
        poll_interval=config.client.poll_interval,
        timeout=config.client.timeout,
    )
    new_job_watcher = providers.Factory(
        NewJobWatcher,
        mailbox=mailbox,
        interval=config.polling.notification_interval,
    )


def create_container(*, settings: dict | None = None) -> EvaluationContainer:
    """Instantiate container with optional overrides."""

    container = EvaluationContainer()

    if not settings:
        return container

    container.config.from_dict(
        {key: value for key, value in settings.items() if key != "components" and value}
    )

    component_settings = settings.get("components", {}) if isinstance(settings, dict) else {}

    if "combiner" in component_settings:
        combiner_config = CombinerConfig(**component_settings["combiner"])
        container.combiner.override(providers.Singleton(ScoreCombiner, config=combiner_config))

    if "yoe" in component_settings:
        yoe_config = YOEConfig(**component_settings["yoe"])
        container.yoe_calculator.override(
            providers.Singleton(YOECalculator, inference=container.inference, config=yoe_config)
        )

    if "extractor" in component_settings:
        extractor_config = ExtractorConfig(**component_settings["extractor"])
        container.extractor.override(
            providers.Singleton(StructuredExtractor, inference=container.inference, config=extractor_config)
        )

    return container
