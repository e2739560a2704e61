"""Unit tests for regex field extractors, RegexExtractor and ExtractionService."""

from unittest.mock import Mock

import pytest

from property_import.config.models import ExtractionMode
from property_import.domain.models import ExtractedProperty, RawPost
from property_import.extraction import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionService,
    RegexExtractor,
    score_confidence,
)
from property_import.extraction.fields import (
    extract_amenities,
    extract_area,
    extract_bathrooms,
    extract_bedrooms,
    extract_contact_email,
    extract_contact_phone,
    extract_features,
    extract_land_size,
    extract_listing_type,
    extract_location,
    extract_price,
    extract_property_type,
    extract_title,
)
from property_import.normalization import normalize_location


class TestFieldExtractors:
    """Each extractor is tested in isolation."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Price: 1.5 Cr negotiable", "1.5 Cr"),
            ("Just 75L only", "75 L"),
            ("₹ 45,00,000 all inclusive", "45,00,000"),
            ("Rs. 90 lakhs", "90 lakhs"),
            ("Asking price: 4500000", "4500000"),
        ],
    )
    def test_extract_price(self, text, expected):
        assert extract_price(text) == expected

    def test_extract_price_none(self):
        assert extract_price("Lovely 2BHK in Kondapur") is None

    def test_extract_location_prefers_known_locality(self):
        assert extract_location("Villa near Banjara Hills, Hyderabad") == "Banjara Hills"

    def test_extract_location_from_pin_emoji(self):
        assert extract_location("📍 Shankarpally Road\nDM us") == "Shankarpally Road"

    def test_extract_location_from_label(self):
        assert extract_location("Location: Adibatla near ORR") == "Adibatla near ORR"

    def test_extract_location_from_preposition(self):
        assert extract_location("Premium plots in Sadashivpet available") == "Sadashivpet"

    def test_extract_location_skips_generic_phrases(self):
        assert extract_location("Available at Best Price in Shadnagar") == "Shadnagar"
        assert extract_location("Plots at Prime Location in Adibatla") == "Adibatla"
        assert extract_location("Grab it at Best Price") is None

    def test_extracted_locality_survives_normalization(self):
        location = extract_location("2BHK flat near lb nagar metro")
        assert location == "LB Nagar"
        assert normalize_location(location).data == "LB Nagar, Hyderabad"

    def test_financial_alone_is_not_a_locality(self):
        assert extract_location("achieve financial freedom today") is None

    def test_extract_location_full_name(self):
        assert extract_location("Office in financial district") == "Financial District"

    def test_counts(self):
        text = "Spacious 3 BHK with 2 bathrooms"
        assert extract_bedrooms(text) == 3
        assert extract_bathrooms(text) == 2

    def test_area(self):
        assert extract_area("1,850 sq.ft carpet") == 1850.0
        assert extract_area("no size given") is None

    def test_land_size_yards_and_acres(self):
        assert extract_land_size("200 sq yards corner plot") == 1800.0
        assert extract_land_size("2 acres farmland") == 87_120.0

    def test_property_type(self):
        assert extract_property_type("Independent house for sale") == "independent house"
        assert extract_property_type("Ready 2BHK") == "bhk"
        assert extract_property_type("Great deal") is None

    def test_listing_type(self):
        assert extract_listing_type("Flat available for rent") == "rent"
        assert extract_listing_type("Land for JV with builders") == "development_partnership"
        assert extract_listing_type("Villa for sale") == "sale"
        assert extract_listing_type("Call now") is None

    def test_contact_phone(self):
        assert extract_contact_phone("Call +91 98765 43210 now") == "+91 98765 43210"
        assert extract_contact_phone("Ph 09876543210") == "09876543210"
        assert extract_contact_phone("Plot no 12345") is None

    def test_contact_email(self):
        assert extract_contact_email("mail sales@homes.in for info") == "sales@homes.in"

    def test_features_and_amenities(self):
        text = "Covered car parking, 24/7 security, gym and lift"
        assert extract_features(text) == ["Parking", "Lift", "Security", "Gym"]
        assert extract_amenities(text) == {
            "parking": True,
            "lift": True,
            "security": True,
            "gym": True,
        }
        assert extract_features("nothing here") is None

    def test_title_strips_emoji_and_hashtags(self):
        text = "🏡✨ Premium Villa @ Kokapet #luxury\nMore details"
        assert extract_title(text) == "Premium Villa @ Kokapet"

    def test_title_skips_emoji_only_lines(self):
        assert extract_title("🔥🔥🔥\nOpen plots at Tellapur") == "Open plots at Tellapur"

    def test_title_is_truncated(self):
        title = extract_title("A" * 100)
        assert len(title) == 80
        assert title.endswith("...")


class TestRegexExtractor:
    """Tests for the heuristic extractor."""

    def test_extracts_villa_post(self, villa_post):
        result = RegexExtractor().extract(villa_post)

        assert result.method == ExtractionMethod.REGEX
        assert result.errors == []
        assert result.warnings == []
        candidate = result.extracted
        assert candidate.price == "1.5 Cr"
        assert candidate.location == "Gachibowli"
        assert candidate.bedrooms == 3
        assert candidate.bathrooms == 3
        assert candidate.area == 2400.0
        assert candidate.property_type == "villa"
        assert candidate.listing_type == "sale"
        assert candidate.contact_phone == "98765 43210"
        assert candidate.source_url == villa_post.post_url
        assert candidate.source_handle == "siliconhomeshyd"
        assert candidate.images == villa_post.images
        assert candidate.description == villa_post.text

    def test_missing_price_is_a_warning(self, no_price_post):
        result = RegexExtractor().extract(no_price_post)
        assert result.succeeded
        assert result.extracted.price is None
        assert "Price not found in post text" in result.warnings

    def test_custom_extractor_list(self):
        extractor = RegexExtractor(extractors=[("title", lambda text: "Fixed")])
        result = extractor.extract(RawPost(text="anything"))
        assert result.extracted.title == "Fixed"
        assert result.extracted.price is None


class TestScoreConfidence:
    def test_base_score(self):
        assert score_confidence(ExtractedProperty()) == 0.5

    def test_all_fields(self):
        candidate = ExtractedProperty(
            price=1, location="x", bedrooms=2, area=10.0, contact_phone="+919876543210"
        )
        assert score_confidence(candidate) == 1.0


class TestExtractionService:
    """Tests for extraction mode dispatch."""

    def _result(self, **fields):
        return ExtractionResult(extracted=ExtractedProperty(**fields), method=ExtractionMethod.REGEX)

    def test_llm_mode_requires_extractor(self):
        with pytest.raises(ValueError):
            ExtractionService(mode=ExtractionMode.LLM)

    def test_regex_mode_never_calls_llm(self, no_price_post):
        llm = Mock()
        service = ExtractionService(mode=ExtractionMode.REGEX, llm_extractor=llm)
        service.extract(no_price_post)
        llm.extract.assert_not_called()

    def test_llm_mode_uses_llm_only(self, villa_post):
        regex = Mock()
        llm = Mock()
        llm.extract.return_value = self._result(price=1, location="x")
        service = ExtractionService(mode="llm", regex_extractor=regex, llm_extractor=llm)

        assert service.extract(villa_post) is llm.extract.return_value
        regex.extract.assert_not_called()

    def test_auto_mode_skips_llm_when_regex_is_complete(self, villa_post):
        llm = Mock()
        service = ExtractionService(mode=ExtractionMode.AUTO, llm_extractor=llm)
        result = service.extract(villa_post)
        assert result.method == ExtractionMethod.REGEX
        llm.extract.assert_not_called()

    def test_auto_mode_falls_back_to_llm(self, no_price_post):
        llm = Mock()
        llm_result = ExtractionResult(
            extracted=ExtractedProperty(price=6_500_000, location="Kondapur"),
            method=ExtractionMethod.LLM,
        )
        llm.extract.return_value = llm_result
        service = ExtractionService(mode=ExtractionMode.AUTO, llm_extractor=llm)

        assert service.extract(no_price_post) is llm_result

    def test_auto_mode_keeps_regex_result_when_llm_fails(self, no_price_post):
        llm = Mock()
        llm.extract.return_value = ExtractionResult(
            errors=["LLM extraction failed: timeout"], method=ExtractionMethod.LLM
        )
        service = ExtractionService(mode=ExtractionMode.AUTO, llm_extractor=llm)

        result = service.extract(no_price_post)

        assert result.method == ExtractionMethod.REGEX
        assert result.errors == []
        assert "LLM extraction failed: timeout" in result.warnings

    def test_auto_mode_without_llm_returns_regex(self, no_price_post):
        result = ExtractionService(mode=ExtractionMode.AUTO).extract(no_price_post)
        assert result.method == ExtractionMethod.REGEX
        assert result.extracted.price is None
