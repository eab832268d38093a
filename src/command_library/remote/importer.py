"""Writing selected remote commands into the local commands directory."""

import logging
from dataclasses import replace
from pathlib import Path

from command_library.core.time.abc import Time
from command_library.errors import ContentValidationError, GitHubCliError, RemoteFetchError
from command_library.remote.fetcher import COMMAND_SUFFIX, RemoteContentFetcher
from command_library.remote.types import (
    ImportOptions,
    ImportResult,
    RemoteCommand,
    RemoteRepository,
)
from command_library.remote.validation import validate_command_content

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 100
UNNAMED_COMMAND = "unnamed_command"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_UNSAFE_FILENAME_PARTS = ("/", "\\", "..", ":", "*", "?", '"', "<", ">", "|")


def sanitize_filename(name: str) -> str:
    """Turn a command name into a safe file stem.

    Path separators, ``..`` and reserved characters become underscores,
    surrounding spaces and dots are stripped, and the result is capped at
    100 characters.
    """
    safe = name
    for part in _UNSAFE_FILENAME_PARTS:
        safe = safe.replace(part, "_")
    safe = safe.strip(" .")
    if not safe:
        safe = UNNAMED_COMMAND
    return safe[:MAX_FILENAME_LENGTH]


def target_path_for(command: RemoteCommand, directory: Path) -> Path:
    return directory / f"{sanitize_filename(command.name)}{COMMAND_SUFFIX}"


def default_import_options(target_directory: Path) -> ImportOptions:
    return ImportOptions(
        target_directory=target_directory,
        overwrite_existing=False,
        create_backups=True,
        validate_content=True,
    )


def check_local_exists(commands: list[RemoteCommand], local_dir: Path) -> list[RemoteCommand]:
    """Return the commands with `local_exists` set for names already present in `local_dir`."""
    return [
        replace(command, local_exists=target_path_for(command, local_dir).exists())
        for command in commands
    ]


class ImportPipeline:
    """Per-command import with skip, backup and validation handling.

    Failures of individual commands are collected in the result; only a
    failure to create the target directory stops the batch.
    """

    def __init__(self, fetcher: RemoteContentFetcher, time: Time) -> None:
        self._fetcher = fetcher
        self._time = time

    def import_commands(
        self,
        repository: RemoteRepository,
        selected_commands: list[RemoteCommand],
        options: ImportOptions,
    ) -> ImportResult:
        """Import the selected commands.

        Args:
            repository: Repository the commands belong to
            selected_commands: Commands to import; bodies are fetched when empty
            options: Target directory and overwrite/backup/validation switches

        Returns:
            ImportResult with every command in exactly one of imported,
            skipped or failed

        Raises:
            OSError: If the target directory cannot be created
        """
        options.target_directory.mkdir(parents=True, exist_ok=True)

        imported: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []
        errors: list[str] = []

        for command in selected_commands:
            try:
                outcome = self._import_one(repository, command, options)
            except (RemoteFetchError, GitHubCliError, ContentValidationError, OSError) as e:
                failed.append(command.name)
                errors.append(f"{command.name}: {e}")
                logger.info("Failed to import %s: %s", command.name, e)
                continue

            if outcome:
                imported.append(command.name)
                logger.info("Imported %s", command.name)
            else:
                skipped.append(command.name)
                logger.info("Skipped %s (already exists)", command.name)

        return ImportResult(
            imported=tuple(imported),
            skipped=tuple(skipped),
            failed=tuple(failed),
            errors=tuple(errors),
        )

    def _import_one(
        self, repository: RemoteRepository, command: RemoteCommand, options: ImportOptions
    ) -> bool:
        """Import a single command. Returns False when it was skipped."""
        if not command.content:
            command = self._fetcher.fetch_body(repository, command)

        target = target_path_for(command, options.target_directory)
        exists = target.exists()
        if exists and not options.overwrite_existing:
            return False

        if options.validate_content:
            try:
                validate_command_content(command.content)
            except ContentValidationError as e:
                raise ContentValidationError(f"Content validation failed: {e}") from e

        if exists and options.create_backups:
            self._create_backup(target)

        target.write_text(command.content, encoding="utf-8")
        return True

    def _create_backup(self, path: Path) -> Path:
        timestamp = self._time.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        backup_path = path.with_name(f"{path.name}.backup_{timestamp}")
        backup_path.write_bytes(path.read_bytes())
        logger.debug("Backed up %s to %s", path, backup_path)
        return backup_path
