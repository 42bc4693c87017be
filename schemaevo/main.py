from schemaevo.api.main import app

if __name__ == "__main__":
    import uvicorn

    from schemaevo.core.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
