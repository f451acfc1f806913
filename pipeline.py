"""
pipeline.py
------------
Main orchestration layer. Wires together:
    1. Record store          →  subscriptions with ordered dates and unit prices
    2. Cadence classifier    →  cadence type + duration per subscription
    3. Revenue aggregator    →  yearly revenue buckets and deltas
    4. Year ranker           →  top-K growth and loss years
    5. Revenue forecaster    →  next-year revenue, returning + new

This is the single entry point for running the engine. Everything else
is internal machinery.

Usage:
    from pipeline import SubscriptionRevenuePipeline

    pipeline = SubscriptionRevenuePipeline()
    report = pipeline.run(transactions_df)
    report.forecast_total
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

import pandas as pd

from config.config_loader import get_analysis_config
from core.cadence_classifier import classify_all, group_by_cadence
from core.errors import InvalidArgumentError
from core.models import CadenceForecast, CadenceType, ClassificationResult, ProcessingError
from core.record_store import RecordStore, ingest
from core.revenue_aggregator import aggregate, deltas
from core.revenue_forecaster import RevenueForecaster
from core.year_ranker import top_growth, top_loss

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """
    Read-only result of one pipeline run.

    Rendering (console text, CSV, dashboard) is left to callers; nothing here
    is formatted for display.
    """
    start_year: int
    end_year: int
    top_k: int
    classifications: List[ClassificationResult]
    cadence_groups: Mapping[CadenceType, Tuple[int, ...]]
    revenue: pd.Series
    revenue_deltas: pd.Series
    growth_years: List[int]
    loss_years: List[int]
    forecasts: List[CadenceForecast]
    forecast_year: int
    forecast_returning: float
    forecast_new: float
    errors: List[ProcessingError] = field(default_factory=list)

    @property
    def forecast_total(self) -> float:
        return self.forecast_returning + self.forecast_new

    @property
    def classification_df(self) -> pd.DataFrame:
        """One row per classified subscription: subscription_id, cadence_type, duration."""
        return pd.DataFrame(
            [
                {
                    "subscription_id": r.subscription_id,
                    "cadence_type": r.cadence_type.name,
                    "duration": r.duration,
                }
                for r in self.classifications
            ],
            columns=["subscription_id", "cadence_type", "duration"],
        )

    @property
    def yearly_df(self) -> pd.DataFrame:
        """One row per year: year, revenue, delta."""
        return pd.DataFrame({
            "year": self.revenue.index.astype(int),
            "revenue": self.revenue.values,
            "delta": self.revenue_deltas.values,
        })

    @property
    def forecast_df(self) -> pd.DataFrame:
        """One row per forecast cadence type."""
        columns = [
            "cadence_type", "subscription_count", "active_count",
            "churned_two_years_ago", "churned_last_year",
            "new_last_year", "new_this_year",
            "predicted_returning", "predicted_new",
            "average_unit_price", "returning_revenue", "new_revenue", "total_revenue",
        ]
        rows = []
        for f in self.forecasts:
            rows.append({
                "cadence_type": f.cadence_type.name,
                "subscription_count": f.subscription_count,
                "active_count": f.active_count,
                "churned_two_years_ago": f.churned_two_years_ago,
                "churned_last_year": f.churned_last_year,
                "new_last_year": f.new_last_year,
                "new_this_year": f.new_this_year,
                "predicted_returning": f.predicted_returning,
                "predicted_new": f.predicted_new,
                "average_unit_price": round(f.average_unit_price, 4),
                "returning_revenue": round(f.returning_revenue, 2),
                "new_revenue": round(f.new_revenue, 2),
                "total_revenue": round(f.total_revenue, 2),
            })
        return pd.DataFrame(rows, columns=columns)

    @property
    def errors_df(self) -> pd.DataFrame:
        return pd.DataFrame(
            [vars(e) for e in self.errors],
            columns=["stage", "entity_id", "error_type", "message"],
        )

    def cadence_counts(self) -> Dict[str, int]:
        """Number of classified subscriptions per cadence type, one-off included."""
        counts = {cadence.name: 0 for cadence in CadenceType}
        for r in self.classifications:
            counts[r.cadence_type.name] += 1
        return counts

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """All tabular outputs keyed by a short name, ready for export."""
        frames = {
            "classifications": self.classification_df,
            "yearly_revenue": self.yearly_df,
            "forecast": self.forecast_df,
        }
        if self.errors:
            frames["errors"] = self.errors_df
        return frames


class SubscriptionRevenuePipeline:
    """
    End-to-end subscription revenue analysis.

    Orchestrates ingestion → classification → aggregation → ranking →
    forecasting without exposing internal objects to callers.
    """

    def __init__(
        self,
        start_year: int | None = None,
        end_year: int | None = None,
        top_k: int | None = None,
    ):
        """
        Args:
            start_year: Override the first year of the window from config.
            end_year: Override the last year of the window from config.
            top_k: Override how many growth/loss years are ranked.
        """
        self.config = get_analysis_config()
        self.start_year = start_year if start_year is not None else self.config["start_year"]
        self.end_year = end_year if end_year is not None else self.config["end_year"]
        self.top_k = top_k if top_k is not None else self.config["top_k_years"]
        self.forecaster = RevenueForecaster()

        logger.info(
            f"Pipeline initialized. Years: {self.start_year}-{self.end_year}. Top-K: {self.top_k}."
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def run(self, transactions: pd.DataFrame) -> AnalysisReport:
        """
        Run the full analysis.

        Args:
            transactions: DataFrame with columns transaction_id,
                subscription_id, amount, transaction_date, in ledger order.

        Returns:
            AnalysisReport. Localized failures are listed in report.errors.

        Raises:
            ParseError: If the ledger cannot be ingested.
            InvalidArgumentError: If the year window is inverted. An invalid
                top_k is reported in report.errors instead.
        """
        logger.info(f"Pipeline starting. Input: {len(transactions):,} transactions.")

        # --- Stage 1: Record store ---
        store = ingest(transactions)

        # --- Stage 2: Cadence classification ---
        classifications, errors = classify_all(store)
        groups = group_by_cadence(classifications)
        group_sizes = {cadence.value: len(ids) for cadence, ids in groups.items()}
        logger.info(
            f"Stage 2 complete. Classified: {len(classifications):,}. Recurring: {group_sizes}."
        )

        # --- Stage 3: Yearly revenue ---
        revenue, revenue_deltas, aggregation_errors = self.run_revenue_only(store)
        errors.extend(aggregation_errors)

        # --- Stage 4: Growth / loss ranking ---
        try:
            growth_years = top_growth(revenue_deltas, self.top_k)
            loss_years = top_loss(revenue_deltas, self.top_k)
        except InvalidArgumentError as exc:
            logger.warning(f"Skipping growth/loss ranking: {exc}")
            growth_years, loss_years = [], []
            errors.append(ProcessingError(
                stage="ranking",
                entity_id=str(self.top_k),
                error_type=type(exc).__name__,
                message=str(exc),
            ))
        logger.info(
            f"Stage 4 complete. Growth years: {len(growth_years)}. Loss years: {len(loss_years)}."
        )

        # --- Stage 5: Forecast ---
        forecast = self.forecaster.forecast(groups, store, self.end_year)
        errors.extend(forecast.errors)

        logger.info(
            f"Pipeline complete. Forecast {forecast.forecast_year}: {forecast.total:,.2f}. "
            f"Errors: {len(errors):,}."
        )

        return AnalysisReport(
            start_year=self.start_year,
            end_year=self.end_year,
            top_k=self.top_k,
            classifications=classifications,
            cadence_groups=groups,
            revenue=revenue,
            revenue_deltas=revenue_deltas,
            growth_years=growth_years,
            loss_years=loss_years,
            forecasts=forecast.forecasts,
            forecast_year=forecast.forecast_year,
            forecast_returning=forecast.returning_revenue,
            forecast_new=forecast.new_revenue,
            errors=errors,
        )

    def run_revenue_only(self, store: RecordStore) -> Tuple[pd.Series, pd.Series, List[ProcessingError]]:
        """Aggregate an ingested store into yearly revenue buckets and deltas."""
        aggregation = aggregate(store.iter_transactions(), self.start_year, self.end_year)
        return aggregation.buckets, deltas(aggregation.buckets), aggregation.errors
