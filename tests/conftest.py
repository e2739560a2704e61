"""Shared pytest fixtures."""

import pytest

from property_import.domain.models import RawPost
from property_import.logging.context import clear_log_context
from property_import.persistence.database import close_database, init_database


@pytest.fixture
def database():
    """Fresh in-memory database for each test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def villa_post():
    return RawPost(
        text=(
            "🏡 Luxury 3BHK Villa for sale in Gachibowli\n"
            "Price: 1.5 Cr\n"
            "2400 sqft, 3 bathrooms, gated community with swimming pool\n"
            "Call 98765 43210 #hyderabadrealestate"
        ),
        post_url="https://www.instagram.com/p/villa001/",
        account_handle="siliconhomeshyd",
        timestamp="2025-03-14T09:30:00.000Z",
        images=["https://cdn.example.com/villa-1.jpg", "https://cdn.example.com/villa-2.jpg"],
    )


@pytest.fixture
def plot_post():
    return RawPost(
        text=(
            "Open plot for sale at Kokapet\n"
            "300 sq yards, ₹75 Lakhs\n"
            "Contact: sales@kokapetplots.in"
        ),
        post_url="https://www.instagram.com/p/plot002/",
        account_handle="kokapetplots",
    )


@pytest.fixture
def no_price_post():
    return RawPost(
        text="Beautiful 2BHK apartment in Kondapur, DM for details",
        post_url="https://www.instagram.com/p/noprice003/",
        account_handle="kondapurhomes",
    )
