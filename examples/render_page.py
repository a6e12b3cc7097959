#!/usr/bin/env python3
"""
Render a page with fingerprinted assets and serve it.

Creates a throwaway asset tree, registers it with a Manager, prints the
rendered HTML, then serves the page and its assets on port 8000.
"""

import sys
import tempfile
from pathlib import Path

from markupsafe import Markup
from werkzeug.middleware.dispatcher import DispatcherMiddleware
from werkzeug.serving import run_simple
from werkzeug.wrappers import Response

# Add assetprint to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from assetprint import AssetApp, Config, Manager

PAGE = Markup("""<!DOCTYPE html>
<html>
<head>
    <title>assetprint</title>
    {link}
    {script}
</head>
<body></body>
</html>""")


def build_assets(root: Path):
    (root / "js").mkdir(parents=True)
    (root / "css").mkdir()
    (root / "js" / "app.js").write_text("console.log('hello');\n")
    (root / "css" / "app.css").write_text("body { margin: 0; }\n")


def main():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        build_assets(root)

        config = Config(fingerprint=True, url_prefix="assets", subresource_integrity=True)
        manager = Manager(config, roots=[root])

        html = PAGE.format(
            link=manager.link("css/app.css"),
            script=manager.script("js/app.js", {"defer": "defer"}),
        )
        print(html)

        page = Response(html, mimetype="text/html")
        app = DispatcherMiddleware(page, {"/assets": AssetApp(manager)})
        run_simple("127.0.0.1", 8000, app)


if __name__ == "__main__":
    main()
