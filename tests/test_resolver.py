from types import SimpleNamespace

import requests

from stocksy.resolver import SymbolResolver, extract_company_phrase, heuristic_fallback


def _settings_stub(finnhub_api_key=None, symbol_table_path=None) -> SimpleNamespace:
    return SimpleNamespace(
        finnhub_api_key=finnhub_api_key,
        symbol_table_path=symbol_table_path,
        request_timeout_sec=5,
    )


def test_known_name_wins_without_network(monkeypatch) -> None:
    def fail_get(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError("network must not be used for known names")

    monkeypatch.setattr(requests, "get", fail_get)
    target = SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("Should I buy Tesla stock?")
    assert target.symbol == "TSLA"
    assert target.company_name == "Tesla"


def test_search_provider_takes_top_result(monkeypatch, make_response) -> None:
    calls = []

    def fake_get(url, params=None, timeout=None):  # type: ignore[no-untyped-def]
        calls.append(params)
        return make_response(
            {
                "count": 2,
                "result": [
                    {"symbol": "PLTR", "description": "PALANTIR TECHNOLOGIES INC-A"},
                    {"symbol": "PLTR.SW", "description": "PALANTIR (SWISS)"},
                ],
            }
        )

    monkeypatch.setattr(requests, "get", fake_get)
    target = SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("should i buy palantir")
    assert target.symbol == "PLTR"
    assert target.company_name == "PALANTIR TECHNOLOGIES INC-A"
    assert calls[0]["q"] == "palantir"


def test_search_failure_falls_back_to_heuristics(monkeypatch) -> None:
    def broken_get(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "get", broken_get)
    target = SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("should i buy palantir")
    assert target.symbol == "PALANTIR"
    assert target.company_name == "PALANTIR"


def test_empty_search_result_falls_back(monkeypatch, make_response) -> None:
    monkeypatch.setattr(requests, "get", lambda *a, **k: make_response({"count": 0, "result": []}))
    target = SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("what about rivian")
    assert target.symbol == "RIVIAN"


def test_extract_company_phrase_trims_filler_words() -> None:
    assert extract_company_phrase("Should I sell Berkshire Hathaway shares now?") == "Berkshire Hathaway"
    assert extract_company_phrase("is it a good time?") is None


def test_heuristic_fallback_variants() -> None:
    assert heuristic_fallback("is ABNB a good pick").symbol == "ABNB"
    assert heuristic_fallback("thoughts on $amd").symbol == "AMD"
    assert heuristic_fallback("what about rivian").symbol == "RIVIAN"
    assert heuristic_fallback("hold coinbase").company_name == "COINBASE"
    assert heuristic_fallback("").symbol == "AAPL"
    assert heuristic_fallback("   ???").symbol == "AAPL"


def test_resolve_offline_skips_search(monkeypatch) -> None:
    def fail_get(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError("offline resolution must not call the search provider")

    monkeypatch.setattr(requests, "get", fail_get)
    resolver = SymbolResolver(_settings_stub(finnhub_api_key="k"))
    assert resolver.resolve_offline("backtest TSLA over  ").symbol == "TSLA"
    assert resolver.resolve_offline("backtest netflix").symbol == "NFLX"


def test_symbol_table_file_extends_known_names(tmp_path) -> None:
    table = tmp_path / "symbols.yaml"
    table.write_text("oracle: orcl\n", encoding="utf-8")
    target = SymbolResolver(_settings_stub(symbol_table_path=table)).resolve("buy Oracle?")
    assert target.symbol == "ORCL"
    assert target.company_name == "Oracle"


def test_search_skips_malformed_rows(monkeypatch, make_response) -> None:
    monkeypatch.setattr(
        requests,
        "get",
        lambda *a, **k: make_response({"result": ["junk", None, {"symbol": "PLTR", "description": "PALANTIR"}]}),
    )
    target = SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("should i buy palantir")
    assert target.symbol == "PLTR"

    monkeypatch.setattr(requests, "get", lambda *a, **k: make_response({"result": "oops"}))
    assert SymbolResolver(_settings_stub(finnhub_api_key="k")).resolve("what about rivian").symbol == "RIVIAN"


def test_past_tense_trade_questions_resolve_to_the_ticker() -> None:
    assert heuristic_fallback("What if I bought amd 6 months ago").symbol == "AMD"
    assert heuristic_fallback("what if I sold nflx a year ago").symbol == "NFLX"
    assert heuristic_fallback("would I have made a profit on pltr since then").symbol == "PLTR"
