"""Channel list parsing, input rows and the CSV/XLSX/PDF documents built from them."""

import io

from openpyxl import load_workbook

from showplot.editor import export
from showplot.editor.inputs import (
    build_input_rows,
    default_profile,
    load_channel_list,
    normalize_key,
    parse_channel_list,
)
from showplot.editor.nodes import make_node

CHANNEL_CSV = """\
,,,,,,,
,FESTIVAL CHANNEL LIST,,,,,,
,,,,,,,
,TOTAL,Instrument,MIC / DI,STAND,NOTES,CABLES,
,1,Kick Drum,Beta 91,,inside,XLR,
,2,Snare  top,SM57,Short Boom,,XLR,
,3,snare top,e904,,,,
,4,Spare,,,,,
"""


class TestChannelList:
    def test_normalize_key(self):
        assert normalize_key("  snare   Top ") == "SNARE TOP"
        assert normalize_key(None) == ""

    def test_parse_finds_header_and_keeps_first_row(self):
        defaults = parse_channel_list(CHANNEL_CSV)
        assert defaults["SNARE TOP"] == {"mic": "SM57", "stand": "Short Boom", "notes": "", "cables": "XLR"}
        assert defaults["KICK DRUM"]["mic"] == "Beta 91"

    def test_rows_with_only_the_instrument_count_when_numbered(self):
        # TOTAL alone is enough to keep the row
        assert "SPARE" in parse_channel_list(CHANNEL_CSV)
        assert parse_channel_list(",Instrument,MIC / DI\n,Empty,\n") == {}

    def test_no_header(self):
        assert parse_channel_list("a,b,c\n1,2,3\n") == {}
        assert parse_channel_list("") == {}

    def test_load_missing_file(self, tmp_path):
        assert load_channel_list(str(tmp_path / "missing.csv")) == {}
        assert load_channel_list(None) == {}

    def test_load_file(self, tmp_path):
        path = tmp_path / "channels.csv"
        path.write_text(CHANNEL_CSV, encoding="utf-8")
        assert "KICK DRUM" in load_channel_list(str(path))

    def test_default_profile_precedence(self):
        defaults = parse_channel_list(CHANNEL_CSV)
        assert default_profile("kick drum", defaults)["mic"] == "Kick Mic (Beta 52/B91)"
        assert default_profile("Snare Top", defaults) == {
            "instrument": "Snare Top",
            "mic": "SM57",
            "stand": "Short Boom",
            "notes": "",
            "cables": "XLR",
        }
        assert default_profile("Theremin", defaults) == {
            "instrument": "Theremin",
            "mic": "",
            "stand": "",
            "notes": "",
            "cables": "",
        }


ASSETS = {
    "1": {"name": "Kick Drum", "category": "Drums", "section": "Kit"},
    "2": {"name": "Vocal Mic", "category": "Vocals", "section": ""},
}


def _nodes():
    vocal = make_node("2", 300.4, 10, node_id="v", profile={"instrument": "Lead Vox", "mic": "SM58"})
    kick = make_node("1", 120.5, 200, node_id="k")
    kick["scale"] = 1.234
    kick["rotation"] = 44.5
    snare = make_node("1", 20, 200, node_id="s")
    text = {"id": "t", "type": "text", "x": 0, "y": 0}
    return [kick, vocal, text, snare]


class TestInputRows:
    def test_order_and_rounding(self):
        rows = build_input_rows(_nodes(), ASSETS)
        assert [r["order"] for r in rows] == [1, 2, 3]
        assert [r["asset_id"] for r in rows] == ["2", "1", "1"]
        kick = rows[2]
        assert kick["x"] == 121
        assert kick["rotation"] == 45
        assert kick["scale"] == 1.23
        assert kick["category"] == "Drums"

    def test_profile_overrides_asset_name(self):
        rows = build_input_rows(_nodes(), ASSETS)
        assert rows[0]["instrument"] == "Lead Vox"
        assert rows[0]["mic"] == "SM58"
        assert rows[1]["instrument"] == "Kick Drum"

    def test_unknown_asset(self):
        rows = build_input_rows([make_node("404", 0, 0)], ASSETS)
        assert rows[0]["item"] == "Unknown"


class TestExport:
    def test_safe_filename(self):
        assert export.safe_filename("  Main / Stage: 2024!  ") == "Main Stage 2024"
        assert export.safe_filename(None) == ""

    def test_csv_layout(self):
        rows = build_input_rows(_nodes(), ASSETS)
        text = export.to_csv(rows, "MAIN CHANNEL LIST")
        lines = text.split("\n")
        assert lines[0] == ",,,,,,,"
        assert lines[1] == ",MAIN CHANNEL LIST,,,,,,"
        assert lines[3] == ",TOTAL,INSTRUMENT,MIC / DI,STAND,NOTES,CABLES,"
        assert lines[4] == ",1,Lead Vox,SM58,,,,"
        assert len(lines) == 7
        assert not text.endswith("\n")

    def test_csv_quotes_commas(self):
        rows = build_input_rows([make_node("1", 0, 0, profile={"instrument": "Kick, In"})], ASSETS)
        assert ',"Kick, In",' in export.to_csv(rows, "T")

    def test_xlsx(self):
        rows = build_input_rows(_nodes(), ASSETS)
        wb = load_workbook(io.BytesIO(export.to_xlsx(rows, "MAIN CHANNEL LIST")))
        ws = wb[export.SHEET_NAME]
        assert ws["B2"].value == "MAIN CHANNEL LIST"
        assert ws["B2"].font.bold
        assert ws["C4"].value == "INSTRUMENT"
        assert ws["B5"].value == 1
        assert ws["C7"].value == "Kick Drum"

    def test_pdf_with_and_without_images(self):
        from conftest import png_bytes

        nodes = _nodes()
        nodes[0]["label"] = "Kick <in>"
        nodes[0]["flip_x"] = True
        rows = build_input_rows(nodes, ASSETS)
        pdf = export.to_pdf("A & B CHANNEL LIST", nodes, rows, {"1": png_bytes()}, {"2": "Vocal Mic"})
        assert pdf.startswith(b"%PDF")

        empty = export.to_pdf("EMPTY", [], [], {})
        assert empty.startswith(b"%PDF")

    def test_pdf_survives_broken_image(self):
        nodes = [make_node("1", 10, 10)]
        pdf = export.to_pdf("T", nodes, build_input_rows(nodes, ASSETS), {"1": b"not an image"}, {"1": "Kick"})
        assert pdf.startswith(b"%PDF")
