from fastapi import FastAPI, Response

from core.metrics_manager import MetricsManager


def create_app(metrics_manager: MetricsManager) -> FastAPI:
    """
    Build the FastAPI app that exposes the prober's latency metrics for scraping.
    """
    app = FastAPI()

    @app.get("/metrics")
    def metrics():
        payload, content_type = metrics_manager.export()
        return Response(payload, media_type=content_type)

    return app
