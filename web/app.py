"""
Flask web server for Hashtag Radar.

Routes
──────
GET  /healthz                                   Liveness probe
GET  /api/hashtags?channel_id=...&limit=...     Tag counts + groups for a channel
GET  /api/team_hashtags?team_id=...&max=...     Tag counts + groups for a team
GET  /api/posts?tag=...&channel_id=...          Messages carrying a tag (flat list)
GET  /api/posts?tag=...&page=...&page_size=...  Same, paginated

CLI
───
flask --app web.app init-db          Create the SQLite tables
flask --app web.app load-json FILE   Import teams/channels/authors/messages
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from pydantic import ValidationError

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.errors import InvalidArgument, StoreError, UpstreamFailure
from core.models import HashtagSummary
from core.service import HashtagService
from core.sqlite_store import SQLiteMessageStore
from core.store import MessageStore

logger = logging.getLogger(__name__)


def _summary_json(summary: HashtagSummary):
    return jsonify(
        {
            "hashtags": [t.model_dump() for t in summary.hashtags],
            "groups": [g.model_dump() for g in summary.groups],
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MessageStore] = None,
) -> Flask:
    """Build the Flask app.

    Without an explicit *store* the app opens (and initialises) the SQLite
    database at ``settings.db_path``.
    """
    settings = settings or Settings()
    settings.validate()
    logging.basicConfig(level=getattr(logging, settings.log_level))

    if store is None:
        sqlite_store = SQLiteMessageStore(settings.db_path)
        sqlite_store.init_db()
        store = sqlite_store

    service = HashtagService(store, settings)
    app = Flask(__name__)

    # ── Errors ─────────────────────────────────────────────────────────────

    @app.errorhandler(InvalidArgument)
    def handle_invalid_argument(exc: InvalidArgument):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(UpstreamFailure)
    def handle_upstream_failure(exc: UpstreamFailure):
        logger.error("Upstream failure on %s: %s", request.path, exc)
        return jsonify({"error": f"Internal error: {exc}"}), 500

    # ── Health ─────────────────────────────────────────────────────────────

    @app.route("/healthz")
    def healthz():
        return jsonify({"status": "ok"})

    # ── Hashtag counts ─────────────────────────────────────────────────────

    @app.route("/api/hashtags")
    def channel_hashtags():
        """Ranked hashtags for one channel.

        Query params:
          channel_id  (required)
          limit       (optional): return only the top N tags
        """
        summary = service.get_channel_hashtags(
            request.args.get("channel_id"),
            request.args.get("limit"),
        )
        return _summary_json(summary)

    @app.route("/api/team_hashtags")
    def team_hashtags():
        """Ranked hashtags across a team's public channels.

        Query params:
          team_id  (required)
          max      (optional): tag occurrences to scan, 0 for all
        """
        team_id = request.args.get("team_id")
        logger.debug("Received team_id=%r", team_id)
        summary = service.get_team_hashtags(team_id, request.args.get("max"))
        return _summary_json(summary)

    # ── Tag lookup ─────────────────────────────────────────────────────────

    @app.route("/api/posts")
    def tag_posts():
        """Messages carrying an exact tag, newest first.

        Query params:
          tag         (required)
          channel_id  (optional): restrict to one channel
          page, page_size (optional): switch to the paginated response
        """
        tag = request.args.get("tag")
        channel_id = request.args.get("channel_id")

        if "page" in request.args or "page_size" in request.args:
            page = service.get_messages_for_tag_page(
                tag,
                channel_id,
                request.args.get("page"),
                request.args.get("page_size"),
            )
            return jsonify(
                {
                    "posts": [m.model_dump() for m in page.items],
                    "totalCount": page.total_count,
                    "page": page.page,
                    "pageSize": page.page_size,
                    "hasMore": page.has_more,
                }
            )

        posts = service.get_messages_for_tag(tag, channel_id)
        return jsonify([m.model_dump() for m in posts])

    # ── CLI ────────────────────────────────────────────────────────────────

    @app.cli.command("init-db")
    def init_db_command():
        """Create the SQLite tables."""
        SQLiteMessageStore(settings.db_path).init_db()
        click.echo(f"Initialised {settings.db_path}")

    @app.cli.command("load-json")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    def load_json_command(path: str):
        """Import an export file into the SQLite store."""
        sqlite_store = SQLiteMessageStore(settings.db_path)
        sqlite_store.init_db()
        try:
            loaded = sqlite_store.load_json(path)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc
        except ValidationError as exc:
            raise click.ClickException(f"{path} has an invalid entry, nothing imported:\n{exc}") from exc
        except StoreError as exc:
            raise click.ClickException(f"Import failed: {exc}") from exc
        click.echo(", ".join(f"{count} {section}" for section, count in loaded.items()))

    return app


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    create_app(settings).run(debug=settings.debug, host="0.0.0.0", port=settings.port)
