"""HTTP surface: receive coverage profiles and serve badges for them.

POST /upload?repo=<name>   store a profile, redirect to its badge
GET  /display?repo=<name>  proxy the badge for the stored profile
"""
import logging
from typing import Callable

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from starlette.datastructures import UploadFile

from hoptocopter import __version__
from hoptocopter.badge import Badge, BadgeServiceError, badge_url, fetch_badge, nan_badge_url
from hoptocopter.config import Config
from hoptocopter.coverage import report_percent, round_percent
from hoptocopter.profile import ProfileParseError, parse_profile_text, parse_profiles
from hoptocopter.storage import InvalidRepoName, ProfileNotFound, ProfileStore, validate_repo

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _server_error(message: str) -> HTTPException:
    logger.error(message)
    return HTTPException(status_code=500, detail=message)


def _check_repo(repo: str) -> str:
    try:
        return validate_repo(repo)
    except InvalidRepoName as e:
        raise HTTPException(status_code=400, detail=str(e))


def create_app(
    config: Config,
    store: ProfileStore | None = None,
    fetch: Callable[[str, float], Badge] = fetch_badge,
) -> FastAPI:
    store = store or ProfileStore(config.storage_dir)

    app = FastAPI(
        title="hoptocopter",
        description="Coverage badges for Go coverage profiles.",
        version=__version__,
    )

    def store_and_measure(repo: str, data: bytes) -> int:
        with store.lock(repo):
            try:
                path = store.save(repo, data)
            except OSError as e:
                raise _server_error(f"error writing coverage file: {e}")
            try:
                profiles = parse_profiles(path)
            except (OSError, ProfileParseError) as e:
                raise _server_error(f"error parsing profile file: {e}")
        return round_percent(report_percent(profiles))

    def load_and_measure(repo: str) -> int:
        with store.lock(repo):
            try:
                data = store.load(repo)
            except (OSError, ProfileNotFound) as e:
                raise _server_error(f"error loading profile file: {e}")
            try:
                profiles = parse_profile_text(data)
            except ProfileParseError as e:
                raise _server_error(f"error parsing profile file: {e}")
        return round_percent(report_percent(profiles))

    @app.post("/upload")
    async def upload(request: Request, repo: str = Query("")):
        _check_repo(repo)

        too_large = HTTPException(
            status_code=413,
            detail=f"upload exceeds {config.max_upload_bytes} bytes",
        )
        length = request.headers.get("content-length", "")
        if length.isdigit() and int(length) > config.max_upload_bytes:
            raise too_large

        form = await request.form()
        upload_file = next(
            (
                value
                for _, value in form.multi_items()
                if isinstance(value, UploadFile) and value.filename
            ),
            None,
        )
        if upload_file is None:
            raise HTTPException(status_code=400, detail="no file part in upload")
        # chunked bodies carry no Content-Length
        data = await upload_file.read(config.max_upload_bytes + 1)
        if len(data) > config.max_upload_bytes:
            raise too_large

        pct = await run_in_threadpool(store_and_measure, repo, data)
        url = badge_url(config.shield_url, pct)
        logger.info("Coverage percent for %s: %d", repo, pct)
        return RedirectResponse(url, status_code=303, headers=NO_CACHE_HEADERS)

    @app.get("/display")
    def display(repo: str = Query("")):
        if not repo:
            return RedirectResponse(nan_badge_url(config.shield_url), status_code=303)
        _check_repo(repo)

        pct = load_and_measure(repo)
        url = badge_url(config.shield_url, pct)
        logger.info("Coverage percent for %s: %d, URL: %s", repo, pct, url)
        try:
            badge = fetch(url, config.shield_timeout)
        except BadgeServiceError as e:
            raise _server_error(str(e))

        return Response(
            content=badge.content,
            media_type=badge.content_type,
            headers=NO_CACHE_HEADERS,
        )

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return app
