# assetprint/server.py
"""
HTTP serving for managed assets.

AssetApp is a WSGI application meant to be mounted at the manager's URL
prefix by the host application's router, e.g.:

    from werkzeug.middleware.dispatcher import DispatcherMiddleware
    app.wsgi_app = DispatcherMiddleware(app.wsgi_app, {"/assets": AssetApp(manager)})

It receives the full request path, strips the prefix itself, and hands the
file to werkzeug's send_file, which takes care of ETag/Last-Modified,
conditional requests and byte ranges.

AssetServer runs an AssetApp on its own, for development or for a dedicated
asset host. serve() is a ready-made WSGI app for the default manager.
"""

import logging
import threading

from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound
from werkzeug.serving import make_server
from werkzeug.utils import send_file
from werkzeug.wrappers import Request, Response

from . import manager as manager_module
from .manager import Manager

logger = logging.getLogger(__name__)

# Fingerprinted URLs change with their content, so they can be cached forever
IMMUTABLE_MAX_AGE = 31536000
IMMUTABLE_CACHE_CONTROL = f"public, max-age={IMMUTABLE_MAX_AGE}, immutable"


class AssetApp:
    """
    WSGI request handler serving a Manager's assets.

    Usage:
        app = AssetApp(manager)
        # mount app under manager.config.url_prefix
    """

    def __init__(self, manager: Manager):
        self.manager = manager

    def dispatch(self, request: Request) -> Response:
        if request.method not in ("GET", "HEAD"):
            raise MethodNotAllowed(valid_methods=["GET", "HEAD"])

        # Mounted apps see the prefix in SCRIPT_NAME; standalone ones in PATH_INFO
        path = request.script_root + request.path
        found = self.manager.lookup_request(path)
        if found is None:
            logger.debug(f"No asset for {path}")
            raise NotFound()

        physical, immutable = found
        try:
            response = send_file(
                physical,
                request.environ,
                conditional=True,
                max_age=IMMUTABLE_MAX_AGE if immutable else None,
            )
        except FileNotFoundError:
            logger.warning(f"Asset {path} maps to missing file {physical}")
            raise NotFound()

        if immutable:
            response.headers["Cache-Control"] = IMMUTABLE_CACHE_CONTROL
        return response

    def wsgi_app(self, environ, start_response):
        request = Request(environ)
        try:
            response = self.dispatch(request)
        except HTTPException as e:
            response = e
        return response(environ, start_response)

    def __call__(self, environ, start_response):
        return self.wsgi_app(environ, start_response)


def serve(environ, start_response):
    """
    WSGI application serving the process-wide default manager.

    The manager is looked up per request, so assets added through the
    module-level helpers are visible without rebuilding the app.
    """
    return AssetApp(manager_module.default_manager)(environ, start_response)


class AssetServer:
    """
    Standalone HTTP server for a Manager.

    Usage:
        server = AssetServer(manager, port=8080)
        server.start()  # Blocking
    """

    def __init__(self, manager: Manager, host: str = "127.0.0.1", port: int = 8080):
        self.manager = manager
        self.host = host
        self.port = port
        self.app = AssetApp(manager)
        self._server = None
        self._lock = threading.Lock()

    def _ensure_server(self):
        with self._lock:
            if self._server is None:
                self._server = make_server(self.host, self.port, self.app, threaded=True)
                # Port 0 asks the OS for a free port
                self.port = self._server.server_port
            return self._server

    def start(self):
        """Start the HTTP server (blocking)."""
        server = self._ensure_server()
        logger.info(f"Asset server starting on {self.host}:{self.port}")
        # werkzeug handles KeyboardInterrupt and closes the socket itself
        server.serve_forever()
        logger.info("Asset server stopped")

    def start_background(self) -> threading.Thread:
        """Start the server in a background thread."""
        self._ensure_server()
        thread = threading.Thread(target=self.start)
        thread.daemon = True
        thread.start()
        return thread

    def shutdown(self):
        """Stop a running server."""
        with self._lock:
            server = self._server
            self._server = None
        if server is not None:
            server.shutdown()
            server.server_close()
