from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

root_router = APIRouter(
    include_in_schema=False,
    tags=["root"],
)


@root_router.get("/", status_code=200, name="root")
def get_root(request: Request):
    settings = request.app.state.settings
    root_path = settings.ROOT_PATH or ""
    content = f"""
        <html>
        <head><title>{settings.APP_TITLE}</title></head>
        <body>
        <h1>{settings.APP_TITLE}</h1>
        """
    if settings.APP_DOCS_URL:
        content += f"""
        <p><a href='{root_path}{settings.APP_DOCS_URL}'>Swagger UI</a></p>
        """
    if settings.APP_REDOC_URL:
        content += f"""
        <p><a href='{root_path}{settings.APP_REDOC_URL}'>ReDoc</a></p>
        """
    content += f"""
        <p><a href='{root_path}/metrics'>Metrics</a></p>
        </body>
        </html>
        """
    return HTMLResponse(content=content)


@root_router.get("/status", status_code=200, name="status")
def get_health():
    return "ok"
