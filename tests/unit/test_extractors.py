"""Unit tests for the ISG page extractors."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from pyisgweb.exceptions import IsgParseError
from pyisgweb.extractors import (
    classify_chart_role,
    classify_value_role,
    current_submenu,
    extract_commands,
    extract_infographics,
    extract_status,
    extract_values,
    parse_decimal,
)
from pyisgweb.models import Command, Reading, ValueType
from pyisgweb.translations import Translator


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestParseDecimal:
    """Test number/unit splitting."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("5,3 °C", (5.3, "°C")),
            ("-2,0 K", (-2.0, "K")),
            ("1,8 bar", (1.8, "bar")),
            ("1234 h", (1234.0, "h")),
            ("45 %", (45.0, "%")),
            ("21", (21.0, "")),
            (" 0,5 m ³/h", (0.5, "m³/h")),
        ],
    )
    def test_values(self, text: str, expected: tuple[float, str]) -> None:
        """German decimals are parsed and the rest becomes the unit."""
        assert parse_decimal(text) == expected

    @pytest.mark.parametrize("text", ["", None, "---", "AUS", "°C"])
    def test_not_a_number(self, text: str | None) -> None:
        """Texts that do not start with a number are rejected."""
        assert parse_decimal(text) is None


class TestSubmenu:
    """Test submenu detection."""

    def test_first_entry(self, values_html: str) -> None:
        """The first #sub_nav entry names the submenu."""
        assert current_submenu(soup_of(values_html)) == "ANLAGE"

    def test_missing(self) -> None:
        """Pages without #sub_nav raise IsgParseError."""
        with pytest.raises(IsgParseError):
            current_submenu(soup_of("<html><body></body></html>"))


class TestValueExtractor:
    """Test the value page extractor."""

    def test_outdoor_temperature(self, values_html: str, translator: Translator) -> None:
        """A German temperature row becomes a temperature reading."""
        readings = {r.key: r for r in extract_values(soup_of(values_html), translator)}

        outdoor = readings["AUSSENTEMPERATUR"]
        assert outdoor.value == 5.3
        assert outdoor.unit == "°C"
        assert outdoor.role == "value.temperature"
        assert outdoor.value_type is ValueType.NUMBER
        assert outdoor.group_path == ("Info", "ANLAGE", "Heizung")
        assert outdoor.display_name == "Außentemperatur"

    def test_roles(self, values_html: str, translator: Translator) -> None:
        """Roles follow the keyword rules."""
        roles = {r.key: r.role for r in extract_values(soup_of(values_html), translator)}

        assert roles == {
            "AUSSENTEMPERATUR": "value.temperature",
            "ISTWERT_HK1": "value.temperature",
            "HEIZUNGSDRUCK": "value.pressure",
            "P_HEIZUNG_TAG": "value.power.consumption",
            "RAUMFEUCHTE": "value.humidity",
            "LAUFZEIT": "value",
        }

    def test_unparseable_rows_skipped(self, values_html: str, translator: Translator) -> None:
        """Rows without a number or without a key produce nothing."""
        keys = [r.key for r in extract_values(soup_of(values_html), translator)]
        assert "FEHLERSTATUS" not in keys
        assert "" not in keys

    def test_restartable(self, values_html: str, translator: Translator) -> None:
        """Extracting twice from the same document yields the same records."""
        soup = soup_of(values_html)
        assert list(extract_values(soup, translator)) == list(extract_values(soup, translator))

    @pytest.mark.parametrize(
        ("key", "role"),
        [
            ("VORLAUFTEMP", "value.temperature"),
            ("FROSTSCHUTZ", "value.temperature"),
            ("SOLLWERT_HK2", "value.temperature"),
            ("DRUCK_HEIZKREIS", "value.pressure"),
            ("P_WW_SUMME", "value.power.consumption"),
            ("RAUMFEUCHTE", "value.humidity"),
            ("VERDICHTERSTARTS", "value"),
        ],
    )
    def test_classify_value_role(self, key: str, role: str) -> None:
        """The first matching keyword rule wins."""
        assert classify_value_role(key) == role


class TestStatusExtractor:
    """Test the status page extractor."""

    def test_only_lit_indicators(self, status_html: str, translator: Translator) -> None:
        """Rows with the "on" symbol yield True, other rows yield nothing."""
        readings = list(extract_status(soup_of(status_html), translator))

        assert [r.key for r in readings] == ["VERDICHTER", "HEIZKREISPUMPE_1"]
        for reading in readings:
            assert reading.value is True
            assert reading.value_type is ValueType.BOOLEAN
            assert reading.role == "indicator.state"
            assert reading.group_path == ("Info", "STATUS", "Betriebsstatus")

    def test_no_explicit_off(self, status_html: str, translator: Translator) -> None:
        """An "off" symbol does not produce a False reading."""
        keys = {r.key for r in extract_status(soup_of(status_html), translator)}
        assert "ABTAUEN" not in keys
        assert "WARMWASSERBEREITUNG" not in keys


class TestCommandExtractor:
    """Test settings page widgets."""

    @pytest.fixture
    def records(self, commands_html: str, translator: Translator) -> dict[str, Command | Reading]:
        return {r.key: r for r in extract_commands(soup_of(commands_html), "4,0,0", translator)}

    def test_record_order(self, commands_html: str, translator: Translator) -> None:
        """Widgets are reported in document order."""
        keys = [r.key for r in extract_commands(soup_of(commands_html), "4,0,0", translator)]
        assert keys == ["RAUMTEMPERATUR", "HEIZKURVE", "WW_SOLL", "aval5", "LUEFTERSTUFE"]

    def test_slider(self, records: dict[str, Command | Reading]) -> None:
        """Slider annotations produce a bounded command."""
        command = records["RAUMTEMPERATUR"]

        assert isinstance(command, Command)
        assert command.min_bound == 0
        assert command.max_bound == 50
        assert command.value == 21.5
        assert command.unit == "°C"
        assert command.role == "state"
        assert command.display_name == "Raumtemperatur Tag"
        assert command.group_path == ("Settings", "HEIZEN", "HEIZKREIS_1")

    def test_slider_without_bounds(self, records: dict[str, Command | Reading]) -> None:
        """Empty or non-numeric bounds are absent, not zero."""
        command = records["HEIZKURVE"]

        assert isinstance(command, Command)
        assert command.min_bound is None
        assert command.max_bound is None
        assert command.value == 0.6

    def test_chval_slider(self, records: dict[str, Command | Reading]) -> None:
        """chval containers carry their script three elements further on."""
        command = records["WW_SOLL"]

        assert isinstance(command, Command)
        assert (command.min_bound, command.max_bound, command.value) == (10, 65, 48)
        assert command.display_name == "Warmwassertemperatur"
        assert command.unit == "°C"

    def test_black_box(self, records: dict[str, Command | Reading]) -> None:
        """Black-box radios become a command with states."""
        command = records["aval5"]

        assert isinstance(command, Command)
        assert command.states == {"0": "Aus", "1": "Ein"}
        assert command.value == 1
        assert command.role == "level"
        assert command.display_name == "Programm"

    def test_current_selection(self, records: dict[str, Command | Reading]) -> None:
        """``current`` selectors are read-only readings."""
        reading = records["LUEFTERSTUFE"]

        assert isinstance(reading, Reading)
        assert reading.value == 2
        assert reading.role == "level"
        assert reading.display_name == "Aktuelle Stufe"
        assert reading.group_path == ("Settings", "HEIZEN", "HEIZKREIS_1")

    def test_german_settings_root(self, commands_html: str) -> None:
        """The settings root is translated."""
        records = list(extract_commands(soup_of(commands_html), "4,0,0", Translator("de")))
        assert records[0].group_path[0] == "Einstellungen"

    def test_page_without_submenu(self, translator: Translator) -> None:
        """Commands fall back to the general group."""
        html = """
        <div id="werte"><div class="col"><h3>Test</h3><div class="field">
          <input type="hidden" name="val1" value="1" />
          <script>o['min'] = '1'; o['max'] = '5'; o['val']='2'; o['id']='val1';</script>
        </div></div></div>
        """
        records = list(extract_commands(soup_of(html), "4,1", translator))
        assert [r.path for r in records] == ["Settings.Allgemein.val1"]

    def test_malformed_widget_skipped(self, translator: Translator) -> None:
        """A broken widget does not stop the page."""
        html = """
        <div id="sub_nav"><a>HEIZEN</a></div>
        <div id="werte">
          <div class="col"><div class="field">
            <div class="current"><input name="c" /></div>
            <div class="opts"><div class="black"><input type="radio" id="X" value="1" /></div></div>
          </div></div>
          <div class="col"><h3>Ok</h3><div class="field">
            <input type="hidden" name="val2" value="3" />
            <script>o['val']='3'; o['id']='val2';</script>
          </div></div>
        </div>
        """
        records = list(extract_commands(soup_of(html), "4,0", translator))
        assert [r.key for r in records] == ["val2"]


class TestStartPage:
    """Test the start page: infographics and operating mode."""

    def test_infographics(self, start_html: str, translator: Translator) -> None:
        """Each chart point and the latest value per series are reported."""
        readings = list(extract_infographics(soup_of(start_html), translator))
        paths = {r.path: r for r in readings}

        assert len(readings) == 6
        heat = paths["Info.ANLAGE.STATISTIK.WÄRMEMENGE.MO.WÄRMEMENGE_ENERGIE_HEIZEN"]
        assert heat.value == 10
        assert heat.unit == "kWh"
        assert heat.role == "value.power.consumption"

        latest = paths["Info.ANLAGE.STATISTIK.WÄRMEMENGE.LATEST_VALUE.WÄRMEMENGE_ENERGIE_HEIZEN"]
        assert latest.value == 12

        outdoor = paths[
            "Info.ANLAGE.STATISTIK.AUSSENTEMPERATUR.LATEST_VALUE.AUSSENTEMPERATUR_TEMPERATUR"
        ]
        assert outdoor.value == 4
        assert outdoor.unit == "°C"
        assert outdoor.role == "value.temperature"

    def test_operating_mode(self, start_html: str, translator: Translator) -> None:
        """The Betriebsart selector becomes a command under Start."""
        records = list(extract_commands(soup_of(start_html), "0", translator))
        commands = [r for r in records if isinstance(r, Command)]

        assert len(records) == 7
        assert len(commands) == 1
        mode = commands[0]
        assert mode.path == "Start.val39"
        assert mode.value == 3
        assert mode.states == {"11": "Automatik", "3": "Tagbetrieb"}
        assert mode.role == "level"
        assert mode.display_name == "Betriebsart"

    def test_operating_mode_options_in_sibling_column(self, translator: Translator) -> None:
        """Mode options rendered next to the selector column are still found."""
        html = """
        <div id="sub_nav"><a class="active">START</a></div>
        <div id="werte">
          <div class="row">
            <div class="col">
              <div class="box">
                <h3>Betriebsart</h3>
                <div class="wrap"><input type="hidden" name="aval39" value="11" /></div>
              </div>
            </div>
            <div class="col2">
              <div class="values">
                <input type="radio" name="6s" value="11" checked="checked" /><label>Automatik</label>
                <input type="radio" name="6s" value="1" /><label>Bereitschaft</label>
                <input type="hidden" name="val39" value="11" />
              </div>
            </div>
          </div>
        </div>
        """
        commands = [
            r for r in extract_commands(soup_of(html), "0", translator) if isinstance(r, Command)
        ]

        assert len(commands) == 1
        assert commands[0].key == "val39"
        assert commands[0].value == 11
        assert commands[0].states == {"11": "Automatik", "1": "Bereitschaft"}

    def test_infographics_only_on_start_page(self, start_html: str, translator: Translator) -> None:
        """Other page paths ignore the chart script."""
        records = list(extract_commands(soup_of(start_html), "4,0,0", translator))
        assert not any(r.path.startswith("Info.ANLAGE.STATISTIK") for r in records)

    @pytest.mark.parametrize(
        ("key", "role"),
        [
            ("Außentemperatur_temperatur", "value.temperature"),
            ("FROSTSCHUTZ", "value.temperature"),
            ("WÄRMEMENGE_ENERGIE_HEIZEN", "value.power.consumption"),
            ("LAUFZEIT", "indicator.state"),
        ],
    )
    def test_classify_chart_role(self, key: str, role: str) -> None:
        """Chart roles match case-insensitively."""
        assert classify_chart_role(key) == role
