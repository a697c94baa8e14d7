"""Pytest configuration and fixtures."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config import settings
from models import ListingRecord
from services.notifier import DeliveryResult


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch, tmp_path) -> None:
    """Set up test environment variables"""
    monkeypatch.setenv('BOT_TOKEN', 'test_token_123456')
    monkeypatch.setenv('ADMIN_CHAT_IDS', '123456789,987654321')
    monkeypatch.setenv('CHECK_INTERVAL_SECONDS', '60')
    monkeypatch.setenv('TRACKING_FILE', str(tmp_path / 'tracking_data.json'))
    monkeypatch.setenv('SITE_ROOT', 'https://www.marktplaats.nl')
    monkeypatch.setenv('SPAM_BLOCKLIST', 'winkel,factuur,nieuw')
    monkeypatch.setenv('REQUEST_TIMEOUT', '30')
    monkeypatch.setenv('EMPTY_RESULT_ALERT_THRESHOLD', '3')
    settings.reload()


@pytest.fixture
def tracking_file(tmp_path) -> Path:
    return tmp_path / 'tracking_data.json'


@pytest.fixture
def make_listing():
    """Factory for listings that pass the default filters"""
    def factory(slug: str, price: int = 50, **overrides) -> ListingRecord:
        fields = {
            'title': f'Listing {slug}',
            'price': price,
            'link': f'https://www.marktplaats.nl/v/fietsen/{slug}',
            'is_featured': False,
            'description': 'prima staat, ophalen in utrecht',
        }
        fields.update(overrides)
        return ListingRecord(**fields)

    return factory


@pytest.fixture
def notifier() -> AsyncMock:
    sink = AsyncMock()
    sink.notify.return_value = DeliveryResult(True)
    return sink


@pytest.fixture
def sample_html() -> str:
    """Sample category page with listing blocks for testing parser"""
    return """
    <html>
        <body>
            <h1>  Fietsen en Brommers  </h1>
            <ul>
                <li class="hz-Listing">
                    <div class="hz-Listing-listview-content">
                        <a class="hz-Listing-coverLink" href="/v/fietsen/m1-gazelle">
                            <h3 class="hz-Listing-title">Gazelle stadsfiets</h3>
                        </a>
                        <p class="hz-Listing-price">€ 120,00</p>
                        <p class="hz-Listing-description">Prima STAAT, nieuwe banden erop</p>
                    </div>
                </li>
                <li class="hz-Listing hz-Listing--featured">
                    <div class="hz-Listing-listview-content">
                        <a class="hz-Listing-coverLink" href="https://www.marktplaats.nl/v/fietsen/m2-batavus">
                            <h3 class="hz-Listing-title">Batavus e-bike</h3>
                        </a>
                        <p class="hz-Listing-price">Bieden</p>
                        <p class="hz-Listing-description">Topadvertentie</p>
                    </div>
                </li>
                <li class="hz-Listing">
                    <div class="hz-Listing-listview-content">
                        <h3 class="hz-Listing-title">Zonder link</h3>
                        <p class="hz-Listing-price">€ 15</p>
                    </div>
                </li>
            </ul>
        </body>
    </html>
    """


@pytest.fixture
def invalid_html() -> str:
    """HTML without listing blocks"""
    return """
    <html>
        <body>
            <div>No listings here</div>
        </body>
    </html>
    """
