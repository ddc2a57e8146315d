"""Self-contained HTML document that hands an embedded playbook to the app."""

import html
import json
import re
from typing import Optional

REDIRECT_DATA_PATTERN = re.compile(r'const PLAYBOOK_DATA = "([A-Za-z0-9_\-+/=%]*)";')


def generate_redirect_html(
    playbook_name: str,
    share_data: str,
    app_url: str,
    ping_interval_ms: int = 500,
    timeout_ms: int = 10000
) -> str:
    """
    Build the redirector document.

    Opening it shows a button that opens the app at `app_url` and runs the
    sender side of the handshake: ping HANDSHAKE_READY every
    `ping_interval_ms`, answer the app's first HANDSHAKE_READY with the
    IMPORT_PLAYBOOK message, stop after `timeout_ms` without an answer.
    The payload is a literal in the page, so the file keeps working offline
    for as long as it is kept.
    """
    title = html.escape(playbook_name)
    data_literal = json.dumps(share_data)
    url_literal = json.dumps(app_url)

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Playbook: {title}</title>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
        body {{ font-family: sans-serif; display: flex; flex-direction: column; align-items: center; justify-content: center; height: 100vh; margin: 0; background: #0f172a; color: white; text-align: center; padding: 20px; box-sizing: border-box; }}
        .card {{ background: #1e293b; padding: 2rem; border-radius: 1rem; box-shadow: 0 10px 25px rgba(0,0,0,0.5); border: 1px solid #334155; max-width: 400px; width: 100%; }}
        .loader {{ border: 4px solid #334155; border-top: 4px solid #3b82f6; border-radius: 50%; width: 40px; height: 40px; animation: spin 1s linear infinite; margin: 0 auto 20px; display: none; }}
        @keyframes spin {{ 0% {{ transform: rotate(0deg); }} 100% {{ transform: rotate(360deg); }} }}
        h2 {{ margin: 0 0 10px; color: #3b82f6; }}
        p {{ color: #94a3b8; font-size: 0.9rem; line-height: 1.5; }}
        .btn {{ display: inline-block; background: #3b82f6; color: white; padding: 12px 24px; border-radius: 6px; font-weight: bold; margin-top: 20px; cursor: pointer; border: none; font-size: 1rem; }}
        .status {{ margin-top: 15px; font-size: 0.8rem; color: #64748b; font-style: italic; }}
    </style>
</head>
<body>
    <div class="card">
        <div id="loader" class="loader"></div>
        <h2>"{title}"</h2>
        <p>This file contains your playbook data. Click the button below to open it in the Play Designer.</p>
        <button id="openBtn" class="btn" onclick="openAndShare()">Open Playbook</button>
        <div id="statusMsg" class="status">Click to load the app...</div>
    </div>

    <script>
        const PLAYBOOK_DATA = {data_literal};
        const APP_URL = {url_literal};
        const APP_ORIGIN = new URL(APP_URL).origin;
        const PING_INTERVAL_MS = {int(ping_interval_ms)};
        const TIMEOUT_MS = {int(timeout_ms)};
        let appWindow = null;
        let pingTimer = null;
        let timeoutTimer = null;
        let transferred = false;

        function stopSignalling() {{
            if (pingTimer) {{ clearInterval(pingTimer); pingTimer = null; }}
            if (timeoutTimer) {{ clearTimeout(timeoutTimer); timeoutTimer = null; }}
        }}

        function ping() {{
            if (appWindow && !appWindow.closed) {{
                appWindow.postMessage("HANDSHAKE_READY", APP_ORIGIN);
            }}
        }}

        function onMessage(event) {{
            if (event.origin !== APP_ORIGIN || event.source !== appWindow) return;
            if (event.data !== "HANDSHAKE_READY" || transferred) return;
            transferred = true;
            stopSignalling();
            appWindow.postMessage({{ type: "IMPORT_PLAYBOOK", data: PLAYBOOK_DATA }}, APP_ORIGIN);
            document.getElementById('statusMsg').textContent = "Success! You can close this tab now.";
            document.getElementById('loader').style.display = "none";
        }}

        function openAndShare() {{
            const btn = document.getElementById('openBtn');
            const status = document.getElementById('statusMsg');
            const loader = document.getElementById('loader');

            status.textContent = "Opening Play Designer...";
            btn.style.display = "none";
            loader.style.display = "block";
            transferred = false;
            stopSignalling();

            appWindow = window.open(APP_URL, "_blank");
            window.addEventListener("message", onMessage);

            ping();
            pingTimer = setInterval(ping, PING_INTERVAL_MS);
            timeoutTimer = setTimeout(() => {{
                stopSignalling();
                if (!transferred) {{
                    status.textContent = "The app did not respond. Click to try again.";
                    btn.style.display = "inline-block";
                    loader.style.display = "none";
                }}
            }}, TIMEOUT_MS);
        }}

        window.addEventListener("beforeunload", stopSignalling);
    </script>
</body>
</html>"""


def extract_redirect_payload(document: str) -> Optional[str]:
    """Payload embedded in a redirector document, if it is one."""
    match = REDIRECT_DATA_PATTERN.search(document)
    return match.group(1) if match else None
