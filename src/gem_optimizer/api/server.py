"""FastAPI server: JSON surface over the rule-based optimizer.

Run with:
    uvicorn gem_optimizer.api.server:app --reload --port 8000

Or:
    python -m gem_optimizer.api.server

Environment (see ``ServerSettings``): ``GEM_OPTIMIZER_CONFIG_PATH`` names an
OptimizerConfig YAML file; ``GEM_OPTIMIZER_HOST``, ``GEM_OPTIMIZER_PORT`` and
``GEM_OPTIMIZER_LOG_LEVEL`` control the entry point.

Endpoints:
    GET  /health      — liveness check
    GET  /vehicles    — known vehicle profiles
    GET  /functions   — controller function catalog (F.1..F.25)
    GET  /strategies  — strategy adjustment tables
    GET  /presets     — named optimization presets
    GET  /status      — optimizer inventory + cache stats
    POST /optimize    — optimize controller settings
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gem_optimizer import __version__
from gem_optimizer.config.functions import CONTROLLER_FUNCTIONS
from gem_optimizer.config.presets import PRESETS
from gem_optimizer.config.settings import ServerSettings
from gem_optimizer.engine.optimizer import RuleBasedOptimizer
from gem_optimizer.engine.rules import STRATEGIES

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Request models
# ═══════════════════════════════════════════════════════════════════════════

class OptimizeRequest(BaseModel):
    """Request body for /optimize.  Every field is optional."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vehicle: dict[str, Any] | str = Field(
        default_factory=dict,
        description="Vehicle data, e.g. {'model': 'e4', 'year': 2019}, or just the model string",
    )
    priorities: dict[str, Any] = Field(
        default_factory=dict,
        description="0-10 weights: speed, range, acceleration, efficiency, hills",
    )
    current_settings: list[Any] | dict[str, Any] | None = Field(
        default=None,
        description="Existing values, index-aligned to F.1..F.25 or keyed by function number",
    )
    conditions: dict[str, Any] = Field(
        default_factory=dict,
        description="temperature (°F), windSpeed (mph), grade (%), load (lbs), surface, humidity (%)",
    )
    preset: str | None = Field(
        default=None,
        description="Preset key from GET /presets; its priorities and seed settings override the request's",
    )


# ═══════════════════════════════════════════════════════════════════════════
# App factory
# ═══════════════════════════════════════════════════════════════════════════

def _optimizer(request: Request) -> RuleBasedOptimizer:
    return request.app.state.optimizer


def create_app(optimizer: RuleBasedOptimizer | None = None) -> FastAPI:
    """Build the API around ``optimizer`` (a default instance when omitted)."""
    app = FastAPI(
        title="GEM Controller Optimizer API",
        version=__version__,
        description=(
            "Rule-based optimization of GEM T2 motor-controller settings. "
            "POST /optimize with a vehicle, priorities and conditions to get "
            "validated settings, predicted performance and recommendations."
        ),
    )
    app.state.optimizer = optimizer if optimizer is not None else RuleBasedOptimizer()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {
            "name": "GEM Controller Optimizer API",
            "version": __version__,
            "start_here": "POST /optimize",
            "docs": "GET /docs (interactive Swagger UI)",
        }

    @app.get("/vehicles")
    def list_vehicles(request: Request):
        registry = _optimizer(request).registry
        return {
            "fallback_model": registry.fallback_model,
            "vehicles": {key: profile.model_dump() for key, profile in registry.items()},
        }

    @app.get("/functions")
    def list_functions():
        return [fn.model_dump() for fn in CONTROLLER_FUNCTIONS.values()]

    @app.get("/strategies")
    def list_strategies():
        return {
            name.value: {
                "priority": strategy.priority,
                "adjustments": {
                    str(fn): {"factor": adj.factor, "min": adj.min, "max": adj.max}
                    for fn, adj in strategy.adjustments.items()
                },
                "constraints": list(strategy.constraints),
                "tradeoffs": list(strategy.tradeoffs),
            }
            for name, strategy in STRATEGIES.items()
        }

    @app.get("/presets")
    def list_presets():
        return {key: preset.model_dump() for key, preset in PRESETS.items()}

    @app.get("/status")
    def status(request: Request):
        return _optimizer(request).status().model_dump(by_alias=True)

    @app.post("/optimize")
    def optimize(req: OptimizeRequest, request: Request):
        """Optimize controller settings.

        Example request:
        ```json
        {"vehicle": {"model": "e4"}, "priorities": {"range": 8},
         "conditions": {"temperature": 35, "grade": 4}}
        ```
        """
        result = _optimizer(request).optimize(
            req.vehicle, req.priorities, req.current_settings, req.conditions, req.preset,
        )
        return result.model_dump(by_alias=True)

    return app


def build_default_optimizer(settings: ServerSettings | None = None) -> RuleBasedOptimizer:
    """Optimizer configured from ``settings`` (read from the environment when omitted)."""
    settings = settings if settings is not None else ServerSettings()
    return RuleBasedOptimizer(settings.optimizer_config())


app = create_app()


if __name__ == "__main__":
    import uvicorn

    server_settings = ServerSettings()
    default_optimizer = build_default_optimizer(server_settings)
    logging.basicConfig(
        level=server_settings.log_level or default_optimizer.config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting GEM optimizer API (config: %s)", server_settings.config_path or "defaults")
    uvicorn.run(create_app(default_optimizer), host=server_settings.host, port=server_settings.port)
