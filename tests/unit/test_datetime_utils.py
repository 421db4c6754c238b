"""Tests for wt_common.datetime_utils period boundaries."""

from datetime import datetime, timedelta, timezone

from src.wt_common.datetime_utils import (
    as_utc,
    day_start,
    month_start,
    same_day,
    same_month,
    same_week,
    week_start,
)

UTC = timezone.utc


class TestAsUtc:
    def test_naive_is_treated_as_utc(self) -> None:
        assert as_utc(datetime(2024, 3, 1, 12)) == datetime(2024, 3, 1, 12, tzinfo=UTC)

    def test_aware_is_converted(self) -> None:
        est = timezone(timedelta(hours=-5))
        converted = as_utc(datetime(2024, 3, 1, 22, tzinfo=est))
        assert converted == datetime(2024, 3, 2, 3, tzinfo=UTC)
        assert converted.tzinfo == UTC


class TestBoundaries:
    def test_day_start(self) -> None:
        assert day_start(datetime(2024, 3, 6, 15, 30, tzinfo=UTC)) == datetime(
            2024, 3, 6, tzinfo=UTC
        )

    def test_week_starts_on_monday(self) -> None:
        # 2024-03-06 is a Wednesday
        assert week_start(datetime(2024, 3, 6, 15, tzinfo=UTC)) == datetime(
            2024, 3, 4, tzinfo=UTC
        )

    def test_week_start_on_monday_itself(self) -> None:
        monday = datetime(2024, 3, 4, 0, 0, tzinfo=UTC)
        assert week_start(monday) == monday

    def test_month_start(self) -> None:
        assert month_start(datetime(2024, 3, 31, 23, 59, tzinfo=UTC)) == datetime(
            2024, 3, 1, tzinfo=UTC
        )


class TestSamePeriod:
    def test_midnight_splits_days(self) -> None:
        assert not same_day(
            datetime(2024, 3, 6, 23, 59, tzinfo=UTC),
            datetime(2024, 3, 7, 0, 1, tzinfo=UTC),
        )

    def test_sunday_and_monday_are_different_weeks(self) -> None:
        assert not same_week(
            datetime(2024, 3, 10, 12, tzinfo=UTC),
            datetime(2024, 3, 11, 12, tzinfo=UTC),
        )

    def test_monday_and_sunday_same_week(self) -> None:
        assert same_week(
            datetime(2024, 3, 4, 0, 0, tzinfo=UTC),
            datetime(2024, 3, 10, 23, 59, tzinfo=UTC),
        )

    def test_month_rollover(self) -> None:
        assert same_month(
            datetime(2024, 2, 1, tzinfo=UTC), datetime(2024, 2, 29, 23, tzinfo=UTC)
        )
        assert not same_month(
            datetime(2024, 2, 29, 23, tzinfo=UTC), datetime(2024, 3, 1, tzinfo=UTC)
        )
