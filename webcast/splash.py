import html


def render_splash(title: str, subtitle: str | None = None, color_scheme: str | None = None) -> str:
    """Render a full-page title card shown between scenario sections."""
    dark = color_scheme == "dark"
    background = "#111" if dark else "#f5f5f5"
    foreground = "#f5f5f5" if dark else "#333"
    subtitle_html = f"<p>{html.escape(subtitle)}</p>" if subtitle else ""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>{html.escape(title)}</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                display: flex;
                flex-direction: column;
                justify-content: center;
                align-items: center;
                min-height: 100vh;
                margin: 0;
                background: {background};
                color: {foreground};
            }}
            h1 {{
                margin: 0;
                font-size: 48px;
            }}
            p {{
                margin-top: 16px;
                font-size: 24px;
                opacity: 0.7;
            }}
        </style>
    </head>
    <body>
        <h1>{html.escape(title)}</h1>
        {subtitle_html}
    </body>
    </html>
    """
