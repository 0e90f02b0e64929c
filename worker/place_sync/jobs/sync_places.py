"""CLI job that enriches pending places and writes the merged fields back."""

import argparse
import dataclasses
import logging
from typing import Any, Dict, List, Optional

from place_sync.core.config import ConfigError, Settings, get_settings, validate_settings
from place_sync.core.db import PlaceStore
from place_sync.core.generation import ResilientGenerator
from place_sync.core.models import PlaceRecord, SyncOutcome
from place_sync.core.reconcile import FieldReconciler, build_update, current_values, is_present
from place_sync.core.scoring import best_candidate
from place_sync.etl.transform import CATEGORY_OTHER, map_category, share_url, to_rich_fields
from place_sync.vendors.errors import ProviderError
from place_sync.vendors.google_places import GooglePlacesSearch
from place_sync.vendors.kakao_local import KakaoLocalSearch
from place_sync.vendors.openai_text import build_text_client

logger = logging.getLogger(__name__)


def build_query(name: str, location: Optional[str]) -> str:
    return " ".join(part.strip() for part in (name, location) if part and part.strip())


class PlaceSyncJob:
    """Run the per-place enrichment pipeline over one batch of pending records."""

    def __init__(
        self,
        settings: Settings,
        store: Any,
        *,
        keyword_search: Optional[Any] = None,
        rich_search: Optional[Any] = None,
        generator: Optional[ResilientGenerator] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.keyword_search = keyword_search
        self.rich_search = rich_search
        self.generator = generator or ResilientGenerator(None, default_locality=settings.default_locality)
        self.reconciler = FieldReconciler.from_settings(settings)

    @property
    def location_bias(self) -> Dict[str, float]:
        return {"lat": self.settings.bias_lat, "lng": self.settings.bias_lng}

    def run(self, limit: Optional[int] = None) -> int:
        if limit is None:
            limit = self.settings.batch_limit
        records = self.store.query_pending(
            limit=limit,
            only_flagged=self.settings.only_flagged,
            include_complete=self.settings.any_force,
        )
        if not records:
            logger.info("No places need updating")
            return 0

        processed = 0
        for record in records:
            try:
                outcome = self.sync_record(record)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to sync place %s", record.name)
            else:
                logger.info(
                    "Synced %s: updated=%s summary=%s tags=%s skipped=%s",
                    outcome.name,
                    ",".join(outcome.updated_fields) or "-",
                    outcome.summary_source or "-",
                    outcome.tags_source or "-",
                    ",".join(outcome.skipped) or "-",
                )
            processed += 1

        logger.info("Processed %d records", processed)
        return processed

    def sync_record(self, record: PlaceRecord) -> SyncOutcome:
        outcome = SyncOutcome(name=record.name)
        values = current_values(record)

        self._resolve_search(record, values, outcome)
        self._resolve_summary(record, values, outcome)
        self._resolve_tags(record, values, outcome)
        self._resolve_rich(record, values, outcome)

        update = build_update(record, values)
        if update:
            self.store.update_partial(record.id, update)
        outcome.updated_fields = sorted(update)
        return outcome

    # ---------- pipeline steps ----------

    def _resolve_search(self, record: PlaceRecord, values: Dict[str, Any], outcome: SyncOutcome) -> None:
        if not self.reconciler.needs_search(values):
            return
        force = self.reconciler.force_classify

        if self.keyword_search is None:
            outcome.skipped.append("kakao")
            self.reconciler.apply(values, {"category": CATEGORY_OTHER}, force=False)
            return

        try:
            candidates = self.keyword_search.search(build_query(record.name, record.location))
        except ProviderError as exc:
            logger.warning("Keyword search failed for %s: %s", record.name, exc)
            outcome.skipped.append("kakao")
            return

        best = best_candidate(candidates, record.name, record.location)
        if best is None:
            self.reconciler.apply(values, {"category": CATEGORY_OTHER}, force=False)
            return
        self.reconciler.apply(
            values,
            {
                "match_url": best.url,
                "category": map_category(best.category_name, best.category_group_code),
            },
            force=force,
        )

    def _resolve_summary(self, record: PlaceRecord, values: Dict[str, Any], outcome: SyncOutcome) -> None:
        if not self.reconciler.needs_summary(values):
            return
        result = self.generator.summarize(record, values.get("category"))
        outcome.summary_source = result.source
        if result.used_fallback:
            logger.debug("Summary fallback for %s (%s)", record.name, result.reason)
        self.reconciler.apply(values, {"summary_text": result.value}, force=self.reconciler.force_summary)

    def _resolve_tags(self, record: PlaceRecord, values: Dict[str, Any], outcome: SyncOutcome) -> None:
        if not self.reconciler.needs_tags(values):
            return
        result = self.generator.classify(record, values.get("category"), values.get("summary_text"))
        outcome.tags_source = result.source
        self.reconciler.apply(values, result.value, force=self.reconciler.force_classify)

    def _resolve_rich(self, record: PlaceRecord, values: Dict[str, Any], outcome: SyncOutcome) -> None:
        if is_present("external_id", values.get("external_id")) and not is_present("map_url", values.get("map_url")):
            values["map_url"] = share_url(values["external_id"])

        if not self.reconciler.needs_rich(values):
            return
        if self.rich_search is None:
            outcome.skipped.append("google")
            return

        try:
            candidates = self.rich_search.search(build_query(record.name, record.location), self.location_bias)
        except ProviderError as exc:
            logger.warning("Places search failed for %s: %s", record.name, exc)
            outcome.skipped.append("google")
            return

        best = best_candidate(candidates, record.name, record.location)
        if best is None:
            logger.debug("No Places match for %s", record.name)
            return
        self.reconciler.apply(values, to_rich_fields(best), force=self.reconciler.force_rating)


def build_job(settings: Settings, store: Optional[Any] = None) -> PlaceSyncJob:
    """Wire providers from settings; disabled or unconfigured providers are left out."""
    keyword_search = None
    if not settings.skip_kakao and settings.kakao_api_key:
        keyword_search = KakaoLocalSearch(settings.kakao_api_key)

    rich_search = None
    if not settings.skip_google and settings.google_api_key:
        rich_search = GooglePlacesSearch(
            settings.google_api_key,
            radius_m=settings.radius_m,
            language=settings.language,
        )

    generator = ResilientGenerator(
        build_text_client(settings.openai_api_key, settings.openai_model),
        default_locality=settings.default_locality,
    )
    return PlaceSyncJob(
        settings,
        store or PlaceStore(settings.database_url),
        keyword_search=keyword_search,
        rich_search=rich_search,
        generator=generator,
    )


def run_sync_job(*, limit: Optional[int] = None, settings: Optional[Settings] = None, **overrides: Any) -> int:
    settings = settings or get_settings()
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    job = build_job(validate_settings(settings))
    try:
        return job.run(limit)
    finally:
        close = getattr(job.store, "close", None)
        if close:
            close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enrich pending places from Kakao, Google Places and OpenAI")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=get_settings().batch_limit,
        help="Maximum number of places to process",
    )
    parser.add_argument("--only-flagged", dest="only_flagged", action="store_true", default=None)
    parser.add_argument("--force-summary", dest="force_summary", action="store_true", default=None)
    parser.add_argument("--force-classify", dest="force_classify", action="store_true", default=None)
    parser.add_argument("--force-rating", dest="force_rating", action="store_true", default=None)
    parser.add_argument("--skip-kakao", dest="skip_kakao", action="store_true", default=None)
    parser.add_argument("--skip-google", dest="skip_google", action="store_true", default=None)
    parser.add_argument("--verbose", dest="verbose", action="store_true", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = args.verbose or get_settings().verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    options = vars(args)
    limit = options.pop("limit")
    try:
        run_sync_job(limit=limit, **options)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
