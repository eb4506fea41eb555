from flask import Flask, request, jsonify, render_template
import logging
import os

from core import (
    apply_profile,
    build_compose_url,
    build_share_text,
    generate_metrics,
    validate_handle,
    VARIANTS,
)
from errors import NotFoundError, ValidationError, VibeError
from profiles import fetch_profile_via_proxy

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["PROFILE_PROXY_URL"] = os.environ.get("PROFILE_PROXY_URL")
app.config["PROFILE_PROXY_SESSION"] = None

MOCK_CONNECT_HANDLE = "@farcaster"


def notice(title, description, variant="default"):
    return {"title": title, "description": description, "variant": variant}


def lookup_profile(username, notices):
    proxy_url = app.config["PROFILE_PROXY_URL"]
    if not proxy_url:
        return None

    try:
        return fetch_profile_via_proxy(
            proxy_url, username, session=app.config["PROFILE_PROXY_SESSION"]
        )
    except NotFoundError:
        notices.append(notice(
            "No Farcaster profile found",
            "Showing vibe-only stats for this handle.",
        ))
    except VibeError as e:
        logger.warning("Profile lookup failed for %s: %s", username, e.message)
        notices.append(notice(
            "Profile lookup failed",
            "Showing vibe-only stats for now.",
        ))
    return None


@app.route("/", methods=["GET", "POST"])
def index():
    handle = ""
    connected = False
    result = None
    share_text = None
    notices = []
    status = 200

    if request.method == "POST":
        handle = (request.form.get("handle") or "").strip()
        connected = bool(request.form.get("connected"))

        if request.form.get("action") == "connect":
            connected = True
            if not handle:
                handle = MOCK_CONNECT_HANDLE
            notices.append(notice(
                "Mock Farcaster connect enabled",
                "This demo version simulates a Farcaster connection for now.",
            ))
        else:
            if connected and not handle:
                handle = MOCK_CONNECT_HANDLE

            try:
                shown = validate_handle(handle)
            except ValidationError as e:
                if e.message == "Handle required":
                    text = "Type a Farcaster username or use the connect option."
                else:
                    text = "Please use a Farcaster username up to 32 characters."
                notices.append(notice(e.message, text, "destructive"))
                status = 400
            else:
                handle = shown
                result = generate_metrics(handle, variant="scanner")
                result = apply_profile(result, lookup_profile(handle[1:], notices))
                share_text = build_share_text(handle, result)
                notices.append(notice(
                    "Main Character Energy calculated",
                    "Screenshot this card and post it to your feed.",
                ))

    page = render_template(
        "index.html",
        handle=handle,
        connected=connected,
        result=result,
        share_text=share_text,
        compose_url=build_compose_url(share_text) if share_text else None,
        notices=notices,
    )
    return page, status


@app.route("/api/metrics")
def metrics():
    handle = request.args.get("handle", "")
    variant = request.args.get("variant", "scanner")
    if variant not in VARIANTS:
        return jsonify({"error": f"Unknown variant: {variant}"}), 400

    result = generate_metrics(handle, variant=variant)
    return jsonify(result._asdict())


@app.route("/health")
def ok():
    return "OK"
