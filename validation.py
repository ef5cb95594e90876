import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from schemas import Game, ValidationSummary
from sql_db_processor import SqlRepository, store_errors

logger = logging.getLogger(__name__)

ARCHIVE_AFTER_YEARS = 10

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    # round-trip form, seven fractional digits
    return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f0Z')


@dataclass
class ValidationRun:
    """Counters and pending writes for one pass over the Games table."""

    timestamp: datetime
    archived_count: int = 0
    needs_review_count: int = 0
    pending: list[tuple[int, str]] = field(default_factory=list)

    @property
    def validated_on(self) -> str:
        return format_timestamp(self.timestamp)

    def annotate(self, game: Game) -> dict:
        needs_update = False

        try:
            annotations = json.loads(game.data) if game.data else {}
        except ValueError:
            annotations = None
        if not isinstance(annotations, dict):
            annotations = {}
            needs_update = True

        if game.year is not None and self.timestamp.year - game.year > ARCHIVE_AFTER_YEARS:
            annotations['archived'] = True
            needs_update = True
            self.archived_count += 1
            logger.info('Game %s (%s) marked as archived - released %s', game.id, game.title, game.year)

        if not game.publisher or not game.publisher.strip():
            annotations['needsReview'] = True
            annotations['validationReason'] = 'Missing publisher'
            needs_update = True
            self.needs_review_count += 1
            logger.info('Game %s (%s) marked as needsReview - missing publisher', game.id, game.title)

        if not game.title.strip() or not game.upc.strip():
            annotations['needsReview'] = True
            annotations['validationReason'] = 'Missing title or UPC'
            needs_update = True
            self.needs_review_count += 1
            logger.info('Game %s marked as needsReview - missing title or UPC', game.id)

        # every row is stamped, so every row is rewritten
        annotations['validatedOn'] = self.validated_on
        needs_update = True

        if needs_update:
            self.pending.append((game.id, json.dumps(annotations)))

        return annotations


def validate_games(repository: SqlRepository, clock: Clock = utc_now) -> ValidationSummary:
    run = ValidationRun(timestamp=clock())
    updated_count = 0

    with store_errors('validate games'), repository.connection() as conn:
        logger.info('SQL connection established. Retrieving games for validation...')
        games = repository.fetch_games(conn)

        for game in games:
            run.annotate(game)

        logger.info('Processed %d games. Found %d games requiring updates', len(games), len(run.pending))

        # one statement per row, no enclosing transaction
        for game_id, data in run.pending:
            repository.update_game_data(conn, game_id, data)
            updated_count += 1

    logger.info('Validation completed successfully. Updated %d games. Archived: %d, Needs Review: %d',
                updated_count, run.archived_count, run.needs_review_count)

    return ValidationSummary(
        updatedCount=updated_count,
        archivedCount=run.archived_count,
        needsReviewCount=run.needs_review_count,
        timestamp=run.validated_on
    )
