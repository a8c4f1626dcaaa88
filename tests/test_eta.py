from datetime import datetime
from math import ceil
from zoneinfo import ZoneInfo

import pytest

from routescore.core.errors import InvalidArgumentError
from routescore.eta.estimator import eta_from_traffic, estimate_eta

NOW = datetime(2026, 1, 5, 10, 0, tzinfo=ZoneInfo("Asia/Kolkata"))


def test_estimate_eta_rounds_minutes_up():
    eta = estimate_eta(1, 40, now=NOW)
    assert eta.minutes == ceil(1 / 40 * 60) == 2
    assert eta.arrival_time == datetime(2026, 1, 5, 10, 2, tzinfo=ZoneInfo("Asia/Kolkata"))
    assert eta.formatted_minutes == "2 min"
    assert eta.formatted_arrival == "10:02"


def test_estimate_eta_defaults_to_forty_kmh():
    assert estimate_eta(20, now=NOW).minutes == 30


def test_zero_distance_means_zero_minutes():
    eta = estimate_eta(0, now=NOW)
    assert eta.minutes == 0
    assert eta.arrival_time == NOW


def test_tiny_distance_still_rounds_to_one_minute():
    assert estimate_eta(0.001, 40, now=NOW).minutes == 1


def test_estimate_eta_is_monotonic_in_distance():
    minutes = [estimate_eta(d / 4, 35, now=NOW).minutes for d in range(0, 200)]
    assert minutes == sorted(minutes)


def test_arrival_crosses_midnight():
    late = datetime(2026, 1, 5, 23, 50, tzinfo=ZoneInfo("Asia/Kolkata"))
    eta = estimate_eta(10, 40, now=late)
    assert eta.formatted_arrival == "00:05"
    assert eta.arrival_time.day == 6


@pytest.mark.parametrize("speed", [0, -10, float("nan"), float("inf")])
def test_estimate_eta_rejects_non_positive_speed(speed):
    with pytest.raises(InvalidArgumentError):
        estimate_eta(5, speed, now=NOW)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError, match="speed_kmh"):
        estimate_eta(5, 0)


def test_estimate_eta_rejects_negative_distance():
    with pytest.raises(InvalidArgumentError, match="distance_km"):
        estimate_eta(-1, 40, now=NOW)


def test_estimate_eta_without_now_uses_aware_current_time():
    eta = estimate_eta(1, 40)
    assert eta.arrival_time.tzinfo is not None


def test_eta_from_traffic_flags_delay_and_keeps_seconds():
    eta = eta_from_traffic(600, 961, now=NOW)
    assert eta.minutes == 17
    assert eta.is_delayed is True
    assert (eta.arrival_time - NOW).total_seconds() == 961
    assert eta.formatted_arrival == "10:16"


def test_eta_from_traffic_not_delayed_when_equal():
    eta = eta_from_traffic(600, 600, now=NOW)
    assert eta.minutes == 10
    assert eta.is_delayed is False


def test_eta_from_traffic_rejects_negative_durations():
    with pytest.raises(InvalidArgumentError):
        eta_from_traffic(-1, 10, now=NOW)
