"""
Seed the card store from the split partition files.

Partitions are processed one after another in index order, and the cards of
a partition in file order. Progress is checkpointed so an interrupted run can
be resumed with --resume; the unit of resume is the partition.
"""

import asyncio
import contextlib
import dataclasses
import logging
import pathlib
from typing import Any, Dict, List, Optional

import orjson

from .. import constants
from ..errors import MissingPrerequisiteError, SetNotFoundError
from ..models import (
    CheckpointState,
    CheckpointStatus,
    ErrorType,
    ParsedCard,
    PartitionFile,
    PartitionKey,
    SeriesInfo,
    SinkRow,
    SplitIndex,
)
from ..retry_controller import RetryController
from ..seed_config import SeedConfig
from ..sinks import AbstractCardSink, sink_from_config
from ..split import load_index
from ..utils import log_section, log_separator
from .assets import AssetPipeline, asset_store_from_config
from .card_parser import (
    card_image_path,
    is_valid_card,
    parse_card,
    should_split_card,
)
from .checkpoint_store import CheckpointStore
from .error_log import ErrorLog

LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass
class SeedOptions:
    """What a seed run should do"""

    split_dir: pathlib.Path = constants.SPLIT_PATH
    set_code: Optional[str] = None
    languages: Optional[List[str]] = None
    limit: int = 0
    skip_images: bool = False
    continue_on_error: bool = False
    resume: bool = False
    dry_run: bool = False
    tcg_slug: str = "mtg"
    checkpoint_interval: int = 50
    image_delay: float = 0.0

    @classmethod
    def from_config(cls, **overrides: object) -> "SeedOptions":
        """
        Defaults from the [Seed] section, with CLI overrides on top.
        Overrides set to None are ignored.
        """
        config = SeedConfig()
        options = cls(
            tcg_slug=config.get("Seed", "tcg_slug", "mtg"),
            checkpoint_interval=max(
                1, config.get_int("Seed", "checkpoint_interval", 50)
            ),
            image_delay=config.get_float("Seed", "image_delay", 0.0),
        )
        for field_name, value in overrides.items():
            if value is not None:
                setattr(options, field_name, value)
        return options


@dataclasses.dataclass(frozen=True)
class WorkItem:
    """One partition waiting to be seeded"""

    key: PartitionKey
    file_path: pathlib.Path
    set_name: str
    card_count: int


@dataclasses.dataclass
class PartitionResult:
    """Record counts of one partition"""

    success: int = 0
    errors: int = 0
    skipped: int = 0


@dataclasses.dataclass
class SeedSummary:
    """Outcome of a seed run"""

    status: CheckpointStatus
    files_processed: int = 0
    success: int = 0
    errors: int = 0
    skipped: int = 0
    total_success: int = 0
    total_errors: int = 0
    total_skipped: int = 0
    error_log_path: Optional[pathlib.Path] = None


def load_split_index(split_dir: pathlib.Path) -> SplitIndex:
    """
    Read the index a split run left in split_dir
    :param split_dir: Split root directory
    :return: Parsed index
    """
    index_path = split_dir.joinpath(constants.INDEX_FILE_NAME)
    if not index_path.is_file():
        raise MissingPrerequisiteError(
            f"Index not found: {index_path}. Run the split command first."
        )
    return load_index(split_dir)


def load_partition_file(file_path: pathlib.Path) -> PartitionFile:
    """Read a partition file written by the materializer"""
    return PartitionFile.model_validate(orjson.loads(file_path.read_bytes()))


class SeedOrchestrator:
    """
    Drives per-record validation, image handling, and sink upserts
    over the partitions of a split index
    """

    def __init__(
        self,
        index: SplitIndex,
        options: SeedOptions,
        sink: AbstractCardSink,
        checkpoint_store: CheckpointStore,
        error_log: ErrorLog,
        assets: Optional[AssetPipeline] = None,
    ) -> None:
        self.index = index
        self.options = options
        self.sink = sink
        self.checkpoint_store = checkpoint_store
        self.error_log = error_log
        self.assets = None if options.skip_images else assets
        self.game_id = ""

    def build_work_list(self, state: CheckpointState) -> List[WorkItem]:
        """
        Partitions to process, in index order
        :param state: Checkpoint, partitions it lists as processed are skipped
        :return: Ordered work list
        """
        work: List[WorkItem] = []
        for key, set_entry in self.index.iter_partitions():
            if self.options.set_code and key.set_code != self.options.set_code:
                continue
            if self.options.languages and key.language not in self.options.languages:
                continue
            if self.options.resume and state.is_processed(key.file_key):
                continue

            language_entry = set_entry.languages[key.language]
            work.append(
                WorkItem(
                    key=key,
                    file_path=self.options.split_dir.joinpath(language_entry.file_path),
                    set_name=set_entry.name,
                    card_count=language_entry.card_count,
                )
            )
        return work

    async def save_checkpoint(self, state: CheckpointState) -> None:
        """Persist the checkpoint off the event loop"""
        await asyncio.to_thread(self.checkpoint_store.save, state)

    async def run(self) -> SeedSummary:
        """
        Seed every partition of the work list
        :return: Counts for this run and for the whole (possibly resumed) run
        """
        state = self.checkpoint_store.load()
        work = self.build_work_list(state)

        if self.options.set_code and self.options.set_code not in self.index.sets:
            raise SetNotFoundError(f"Set '{self.options.set_code}' not found in index")

        summary = SeedSummary(status=CheckpointStatus.IN_PROGRESS)
        if not work:
            LOGGER.info("All files already processed!")
            return await self.finish(state, summary)

        LOGGER.info(f"Files to process: {len(work)}")
        if self.options.languages:
            LOGGER.info(f"Filtering languages: {', '.join(self.options.languages)}")
        if self.options.limit > 0:
            LOGGER.info(f"Card limit per file: {self.options.limit}")
        if self.options.resume and state.processed_files:
            LOGGER.info(f"Resuming: {len(state.processed_files)} files already processed")

        if not self.options.dry_run:
            self.game_id = await self.sink.resolve_game(self.options.tcg_slug)
            LOGGER.info(f"TCG ID: {self.game_id}")

        log_separator()
        for position, item in enumerate(work, start=1):
            LOGGER.info(
                f"Processing {position}/{len(work)}: {item.key.set_code.upper()} "
                f"[{item.key.language}] ({item.set_name})"
            )
            state.current_file = item.key.file_key
            state.current_file_records = 0
            await self.save_checkpoint(state)

            if not item.file_path.is_file():
                LOGGER.error(f"  File not found: {item.file_path}")
                self.error_log.record(
                    ErrorType.API,
                    item.key.set_code,
                    f"Partition file not found: {item.file_path}",
                    language=item.key.language,
                )
                continue

            if self.options.dry_run:
                would_process = item.card_count
                if self.options.limit > 0:
                    would_process = min(would_process, self.options.limit)
                LOGGER.info(f"  [DRY RUN] Would process {would_process} cards")
                summary.success += would_process
                continue

            try:
                result = await self.process_partition(item, state)
            except Exception as error:
                LOGGER.error(f"  Error: {error}")
                self.error_log.record(
                    ErrorType.API,
                    item.key.set_code,
                    str(error),
                    language=item.key.language,
                )
                if not self.options.continue_on_error:
                    state.status = CheckpointStatus.FAILED
                    await self.save_checkpoint(state)
                    raise
                continue

            LOGGER.info(
                f"    Done: {result.success} cards "
                f"({result.errors} errors, {result.skipped} skipped)"
            )
            summary.files_processed += 1
            summary.success += result.success
            summary.errors += result.errors
            summary.skipped += result.skipped
            state.mark_processed(
                item.key.file_key, result.success, result.errors, result.skipped
            )
            await self.save_checkpoint(state)

            LOGGER.info(
                f"Overall: {position}/{len(work)} files "
                f"({position / len(work) * 100:.1f}%)"
            )

        return await self.finish(state, summary)

    async def finish(
        self, state: CheckpointState, summary: SeedSummary
    ) -> SeedSummary:
        """
        Mark the run completed and fold the checkpoint totals into the summary
        """
        state.status = CheckpointStatus.COMPLETED
        state.current_file = None
        await self.save_checkpoint(state)

        summary.status = state.status
        summary.total_success = state.total_success
        summary.total_errors = state.total_errors
        summary.total_skipped = state.total_skipped
        if self.error_log.appended:
            summary.error_log_path = self.error_log.error_log_path
        return summary

    async def process_partition(
        self, item: WorkItem, state: CheckpointState
    ) -> PartitionResult:
        """
        Seed the cards of one partition file
        :param item: Partition to process
        :param state: Checkpoint, saved every checkpoint_interval records
        :return: Record counts
        """
        partition = await asyncio.to_thread(load_partition_file, item.file_path)
        LOGGER.info(
            f"    Cards: {partition.card_count}, Language: {partition.language}"
        )

        series_id = await self.sink.ensure_series(
            self.game_id,
            SeriesInfo(
                code=partition.set_code,
                name=partition.set_name,
                release_date=partition.release_date,
                card_count=self.index.base_card_count(partition.set_code)
                or partition.card_count,
            ),
        )

        result = PartitionResult()
        processed = 0
        for card in partition.cards:
            if self.options.limit > 0 and processed >= self.options.limit:
                result.skipped += 1
                continue

            if not is_valid_card(card):
                result.skipped += 1
                self.error_log.record(
                    ErrorType.VALIDATION,
                    partition.set_code,
                    "Missing required fields",
                    card_number=card.get("collector_number"),
                    language=partition.language,
                    scryfall_id=card.get("id"),
                )
                continue

            parsed = parse_card(card)
            if parsed is None:
                result.skipped += 1
                continue

            try:
                await self.process_card(series_id, card, parsed)
                result.success += 1
            except Exception as error:
                result.errors += 1
                self.error_log.record(
                    ErrorType.DATABASE,
                    partition.set_code,
                    str(error) or "Unknown error",
                    card_number=card["collector_number"],
                    language=card["lang"],
                    scryfall_id=card["id"],
                )
                if not self.options.continue_on_error:
                    raise

            processed += 1
            if processed % self.options.checkpoint_interval == 0:
                state.current_file_records = processed
                await self.save_checkpoint(state)
                LOGGER.info(f"      {processed}/{len(partition.cards)} cards...")

        return result

    async def store_image(self, parsed: ParsedCard) -> Optional[str]:
        """
        Fetch and store the image of a card face
        :return: Stored URL, None when skipped or unavailable
        """
        if self.assets is None or not parsed.image_url:
            return None

        stored_url = await self.assets.process(
            parsed.image_url,
            card_image_path(parsed.set_code, parsed.language, parsed.number),
        )
        if stored_url is None:
            self.error_log.record(
                ErrorType.IMAGE,
                parsed.set_code,
                f"Image unavailable: {parsed.image_url}",
                card_number=parsed.number,
                language=parsed.language,
                scryfall_id=parsed.attributes.get("scryfall_id"),
            )
        return stored_url

    async def process_card(
        self, series_id: str, card: Dict[str, Any], parsed: ParsedCard
    ) -> None:
        """
        Store one card, and its back face when it is kept separately
        :param series_id: Owning series in the sink
        :param card: Raw bulk record
        :param parsed: Front face of the card
        """
        image_url = await self.store_image(parsed)
        await self.sink.upsert_card(SinkRow.from_parsed(series_id, parsed, image_url))

        if should_split_card(card):
            back_face = parse_card(card, 1)
            if back_face and back_face.image_url:
                back_image_url = await self.store_image(back_face)
                await self.sink.upsert_card(
                    SinkRow.from_parsed(series_id, back_face, back_image_url)
                )


def list_sets(index: SplitIndex) -> None:
    """
    Log the index: totals, then every set grouped by set type
    :param index: Split index
    """
    log_section("Available Magic Sets")
    LOGGER.info(f"Generated: {index.generated_at}")
    LOGGER.info(f"Languages: {', '.join(index.target_languages)}")
    LOGGER.info(f"Total sets: {index.total_sets}")
    LOGGER.info(f"Total files: {index.total_files}")
    LOGGER.info(f"Total cards: {index.total_cards:,}")
    log_separator()

    by_type: Dict[str, List[str]] = {}
    for set_code, set_entry in index.sets.items():
        by_type.setdefault(set_entry.set_type, []).append(set_code)

    for set_type, set_codes in sorted(by_type.items(), key=lambda x: -len(x[1])):
        LOGGER.info(f"{set_type.upper()} ({len(set_codes)} sets):")
        for set_code in sorted(set_codes):
            set_entry = index.sets[set_code]
            languages = ", ".join(
                f"{language}:{entry.card_count}"
                for language, entry in set_entry.languages.items()
            )
            LOGGER.info(
                f"  {set_code:<8} {set_entry.total_cards:>5} cards "
                f"[{languages}] - {set_entry.name}"
            )


def show_summary(summary: SeedSummary) -> None:
    """Log the end of run summary block"""
    log_separator()
    log_section("Summary")
    LOGGER.info(f"Cards processed: {summary.success:,}")
    if summary.errors:
        LOGGER.error(f"Errors: {summary.errors}")
    if summary.skipped:
        LOGGER.warning(f"Skipped: {summary.skipped}")
    if summary.total_success != summary.success:
        LOGGER.info(
            f"Run totals including resumed files: {summary.total_success:,} cards, "
            f"{summary.total_errors} errors, {summary.total_skipped} skipped"
        )
    if summary.error_log_path:
        LOGGER.info(f"See: {summary.error_log_path}")


async def seed_cards(
    options: SeedOptions,
    sink: Optional[AbstractCardSink] = None,
    assets: Optional[AssetPipeline] = None,
) -> SeedSummary:
    """
    Wire a seed run together from configuration and execute it
    :param options: Seed configuration
    :param sink: Card sink, built from the [Sink] section when omitted
    :param assets: Asset pipeline, built from the [Assets] section when omitted
    :return: Run summary
    """
    index = load_split_index(options.split_dir)

    log_section("Magic Seed from Split Files")
    if options.dry_run:
        LOGGER.warning("DRY RUN MODE - No changes will be made")

    retry = RetryController.from_config()
    sink = sink or sink_from_config(retry)
    if assets is None and not options.skip_images and not options.dry_run:
        assets = AssetPipeline(
            asset_store_from_config(), retry, delay=options.image_delay
        )

    orchestrator = SeedOrchestrator(
        index,
        options,
        sink,
        CheckpointStore(
            constants.CHECKPOINT_PATH,
            resume=options.resume,
            enabled=not options.dry_run,
        ),
        ErrorLog(constants.ERROR_LOG_PATH, enabled=not options.dry_run),
        assets,
    )

    async with contextlib.AsyncExitStack() as stack:
        if not options.dry_run:
            await stack.enter_async_context(sink)
            if orchestrator.assets is not None:
                await stack.enter_async_context(orchestrator.assets)
        summary = await orchestrator.run()

    show_summary(summary)
    return summary
