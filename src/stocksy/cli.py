from __future__ import annotations

import json
from typing import Any, Callable, Dict

import typer
import uvicorn

from stocksy.config import get_settings
from stocksy.errors import StocksyError
from stocksy.logging_utils import setup_logging
from stocksy.pipeline import Services, run_backtest, run_sentiment
from stocksy.web import create_app

app = typer.Typer(help="Stocksy news-sentiment trading assistant")


def _run_once(runner: Callable[[Services, str], Dict[str, Any]], prompt: str) -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        result = runner(Services.from_settings(settings), prompt)
    except StocksyError as exc:
        typer.echo(f"Error: {exc.message}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, ensure_ascii=False, indent=2))


@app.command("sentiment")
def sentiment(prompt: str = typer.Argument(..., help='e.g. "Should I buy Tesla?"')) -> None:
    _run_once(run_sentiment, prompt)


@app.command("backtest")
def backtest(prompt: str = typer.Argument(..., help='e.g. "Backtest NVDA over 6 months"')) -> None:
    _run_once(run_backtest, prompt)


@app.command("serve")
def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    web_app = create_app(settings)
    uvicorn.run(web_app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    app()
