"""Main orchestrator with dependency injection."""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from dependency_injector import containers, providers
from pydantic import ValidationError

from . import __version__
from .core import LOG_LEVELS, SessionContext, StatuslineConfig, load_env_file
from .core.exceptions import ContextError
from .git import GitInspector
from .processors import SessionDiffCalculator, TranscriptDiffExtractor, UsageAggregator
from .render import PLACEHOLDER, Renderer, ThemeResolver
from .state import CacheStorage, DiffCache, JsonFileStorage
from .utils import setup_logging

logger = logging.getLogger(__name__)


class Statusline:
    """
    Produce the status line for one session context.

    Follows dependency injection pattern with all dependencies
    injected through constructor. Each collaborator returns a resolved
    or defaulted value, so rendering never sees a raw failure.
    """

    def __init__(
        self,
        git_inspector: GitInspector,
        diff_calculator: SessionDiffCalculator,
        usage_aggregator: UsageAggregator,
        theme_resolver: ThemeResolver,
        renderer: Renderer
    ):
        self.git_inspector = git_inspector
        self.diff_calculator = diff_calculator
        self.usage_aggregator = usage_aggregator
        self.theme_resolver = theme_resolver
        self.renderer = renderer

    def render(self, context: SessionContext) -> str:
        branch = self.git_inspector.current_branch(context.working_directory)
        diff = self.diff_calculator.compute(context.session_id, context.transcript_path)
        usage = self.usage_aggregator.aggregate(context)
        palette = self.theme_resolver.resolve()

        for name, resolved in (("branch", branch), ("diff", diff), ("usage", usage), ("theme", palette)):
            if resolved.degraded:
                logger.debug(f"Using fallback {name}: {resolved.reason}")

        return self.renderer.render(
            branch=branch.value,
            diff=diff.value,
            model=context.model_name,
            usage=usage.value,
            palette=palette.value
        )


class StatuslineContainer(containers.DeclarativeContainer):
    """Dependency injection container using dependency-injector library."""

    config = providers.Singleton(StatuslineConfig.from_env)

    # Durable state
    storage = providers.Singleton(
        JsonFileStorage,
        cache_file=config.provided.cache_file_path,
        lock_timeout=config.provided.lock_timeout
    )

    diff_cache = providers.Singleton(
        DiffCache,
        storage=storage,
        ttl_days=config.provided.cache_ttl_days
    )

    # Collaborators
    git_inspector = providers.Singleton(
        GitInspector,
        timeout=config.provided.git_timeout
    )

    extractor = providers.Singleton(
        TranscriptDiffExtractor,
        excluded_prefix=config.provided.excluded_prefix_path
    )

    diff_calculator = providers.Singleton(
        SessionDiffCalculator,
        cache=diff_cache,
        extractor=extractor
    )

    usage_aggregator = providers.Singleton(UsageAggregator)

    theme_resolver = providers.Singleton(
        ThemeResolver,
        settings_file=config.provided.settings_file_path,
        override=config.provided.theme
    )

    renderer = providers.Singleton(
        Renderer,
        bar_width=config.provided.bar_width,
        warning_threshold=config.provided.warning_threshold,
        critical_threshold=config.provided.critical_threshold,
        color=config.provided.color
    )

    statusline = providers.Factory(
        Statusline,
        git_inspector=git_inspector,
        diff_calculator=diff_calculator,
        usage_aggregator=usage_aggregator,
        theme_resolver=theme_resolver,
        renderer=renderer
    )


def create_statusline(
    config: Optional[StatuslineConfig] = None,
    storage: Optional[CacheStorage] = None
) -> Statusline:
    """
    Factory function to create a configured statusline.

    Args:
        config: Optional configuration, uses environment if not provided
        storage: Optional cache storage, defaults to the JSON cache file

    Returns:
        Configured Statusline instance
    """
    container = StatuslineContainer()

    if config:
        container.config.override(config)
    if storage:
        container.storage.override(storage)

    return container.statusline()


def parse_context(raw: str) -> SessionContext:
    """
    Parse the session context JSON.

    Raises:
        ContextError: If the payload is not a valid session context
    """
    try:
        data = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        raise ContextError("<stdin>", raw[:80], f"invalid JSON: {e}")

    if not isinstance(data, dict):
        raise ContextError("<stdin>", type(data).__name__, "expected a JSON object")

    try:
        return SessionContext.model_validate(data)
    except ValidationError as e:
        raise ContextError("<stdin>", None, str(e))


def _load_config() -> StatuslineConfig:
    load_env_file()
    try:
        return StatuslineConfig.from_env()
    except ValueError as e:
        # Logging is not configured yet
        print(f"statusline: invalid configuration, using defaults: {e}", file=sys.stderr)
        return StatuslineConfig()


def main(
    argv: Optional[List[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None
) -> int:
    """Main entry point for CLI execution."""
    parser = argparse.ArgumentParser(
        prog="statusline",
        description="Render a Claude Code status line from session JSON on stdin"
    )
    parser.add_argument("--version", action="store_true", help="Print the version and exit")
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", help="Also write logs to this file")

    args = parser.parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    if args.version:
        print(__version__, file=stdout)
        return 0

    config = _load_config()
    log_level = args.log_level or config.log_level
    if log_level.upper() not in LOG_LEVELS:
        print(
            f"statusline: unknown log level {log_level!r}, using {config.log_level}",
            file=sys.stderr
        )
        log_level = config.log_level
    setup_logging(log_level, args.log_file or config.log_file)

    try:
        raw = stdin.read()
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read session context from stdin: {e}")
        return 1

    try:
        context = parse_context(raw)
    except ContextError as e:
        logger.warning(f"{e}; rendering with an empty context")
        context = SessionContext()

    try:
        line = create_statusline(config).render(context)
    except Exception as e:
        logger.exception(f"Rendering failed: {e}")
        line = PLACEHOLDER

    print(line, file=stdout)
    return 0
