"""Shared fixtures for the relief map tests."""

import pytest

from relief_map.classification import to_epoch_ms
from relief_map.data_ingestion import normalize

HOUR_MS = 60 * 60 * 1000
NOW_MS = to_epoch_ms("2024-01-01T12:00:00Z")

HEADER = ["id", "lat", "lng", "status", "updated_at", "Location Name", "Phone", "needed", "surplus", "Notes"]


@pytest.fixture
def now_ms():
    return NOW_MS


@pytest.fixture
def feed():
    return [
        HEADER,
        [1, 7.29, 80.63, "critical", "2024-01-01T11:00:00Z", "Kandy Central School", "0771234567",
         [{"item": "Rice", "amount": "10kg"}, {"item": "Dhal", "amount": "5kg"}], [], "Gate B"],
        [2, 6.93, 79.85, "surplus", "2024-01-01T10:30:00Z", "Colombo Town Hall", "0112345678",
         [], [{"item": "Water bottles", "amount": "200"}], ""],
        [3, 9.66, 80.02, "critical", "2023-12-30T08:00:00Z", "Jaffna Kovil", "",
         [{"item": "Milk powder", "amount": "20 packs"}], [], ""],
        [4, 7.87, 80.65, "", "2024-01-01T09:00:00Z", "Matale Relief Camp", "0667654321",
         [{"item": "Blankets", "amount": "50"}], [{"item": "Rice", "amount": "30kg"}], "Night drop-off"],
        [5, "", "", "critical", "2024-01-01T11:30:00Z"],
    ]


@pytest.fixture
def sites(feed, now_ms):
    return normalize(feed, now_ms, 24 * HOUR_MS)
