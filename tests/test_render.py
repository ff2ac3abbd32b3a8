import pytest
from bs4 import BeautifulSoup
from directory.models import Provider
from directory.render import (
    LOAD_ERROR_MESSAGE,
    NO_RESULTS_MESSAGE,
    render_card,
    render_error,
    render_results,
    split_phones,
)


def _soup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


@pytest.fixture
def clinic():
    return Provider(
        name="عيادة النخبة",
        category="clinics",
        specialty="أسنان",
        area="الدقي",
        address="شارع التحرير",
        phone="0237482211 - 0237482212",
    )


@pytest.fixture
def pharmacy():
    """No specialty, no address."""
    return Provider(name="صيدلية سيف", category="pharmacies", area="المعادي", phone="19199")


class TestSplitPhones:
    """Splitting one phone field into callable numbers."""

    def test_hyphen_with_spaces(self):
        assert split_phones("01234567 - 09876543") == ["01234567", "09876543"]

    def test_single_number(self):
        assert split_phones(" 0123456 ") == ["0123456"]

    def test_en_dash(self):
        assert split_phones("0238500911 – 0238500912") == ["0238500911", "0238500912"]

    def test_bare_hyphen(self):
        assert split_phones("222-333") == ["222", "333"]

    def test_whitespace_only_separator(self):
        assert split_phones("0222745566 0222745567") == ["0222745566", "0222745567"]

    def test_empty(self):
        assert split_phones("") == []
        assert split_phones(None) == []

    def test_provider_phone_numbers(self, clinic):
        assert clinic.phone_numbers == ["0237482211", "0237482212"]


class TestRenderCard:
    """One provider card."""

    def test_card_fields(self, clinic):
        card = _soup(render_card(clinic)).select_one(".provider-card")
        assert card["data-category"] == "clinics"
        assert card.select_one(".provider-name").get_text() == "عيادة النخبة"
        assert card.select_one(".provider-specialty").get_text() == "أسنان"
        assert card.select_one(".provider-area").get_text() == "الدقي"
        assert card.select_one(".provider-address").get_text() == "شارع التحرير"

    def test_one_tel_link_per_number(self, clinic):
        links = _soup(render_card(clinic)).select("a.phone-link")
        assert [a["href"] for a in links] == ["tel:0237482211", "tel:0237482212"]
        assert [a.get_text(strip=True) for a in links] == ["0237482211", "0237482212"]

    def test_optional_fields_omitted(self, pharmacy):
        card = _soup(render_card(pharmacy))
        assert card.select_one(".provider-specialty") is None
        assert card.select_one(".provider-address") is None
        assert card.select_one(".provider-area").get_text() == "المعادي"

    def test_text_is_escaped(self):
        provider = Provider(name="<script>x</script>", category="labs", area="a & b", phone="1")
        markup = render_card(provider)
        assert "<script>" not in markup
        assert _soup(markup).select_one(".provider-name").get_text() == "<script>x</script>"


class TestRenderResults:
    """The whole results grid."""

    def test_one_card_per_provider(self, clinic, pharmacy):
        soup = _soup(render_results([clinic, pharmacy]))
        assert len(soup.select(".provider-card")) == 2
        assert soup.select(".no-results") == []

    def test_empty_renders_single_placeholder(self):
        soup = _soup(render_results([]))
        assert len(soup.select(".no-results")) == 1
        assert soup.select(".provider-card") == []
        assert soup.get_text() == NO_RESULTS_MESSAGE

    def test_broken_card_does_not_blank_grid(self, clinic, pharmacy, caplog):
        """A record that fails to render becomes an empty card; the rest still render."""
        broken = Provider.model_construct(name="x", category="not-a-category", area="y", phone="1")
        soup = _soup(render_results([clinic, broken, pharmacy]))

        cards = soup.select(".provider-card")
        assert len(cards) == 3
        assert "provider-card--empty" in cards[1]["class"]
        assert cards[2].select_one(".provider-name").get_text() == "صيدلية سيف"
        assert "Failed to render card" in caplog.text

    def test_render_is_total_replacement(self, clinic, pharmacy):
        """Rendering twice yields identical markup (no accumulated output)."""
        assert render_results([clinic]) == render_results([clinic])
        assert render_results([pharmacy]) != render_results([clinic, pharmacy])


class TestRenderError:
    def test_default_message(self):
        soup = _soup(render_error())
        assert soup.select_one(".error-message").get_text() == LOAD_ERROR_MESSAGE
