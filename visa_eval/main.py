import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visa_eval.config import settings
from visa_eval.routes import documents_router, evaluation_router, rules_router
from visa_eval.services.evaluation_service import evaluation_service

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.app_name,
    description="Rule based visa eligibility evaluation service",
    version=settings.app_version,
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(evaluation_router, prefix=settings.api_prefix)
app.include_router(documents_router, prefix=settings.api_prefix)
app.include_router(rules_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": f"{settings.app_name} is running", "version": settings.app_version}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "visa-eligibility-evaluator",
        "rule_set_version": evaluation_service.rule_engine.version,
        "document_catalog_version": evaluation_service.document_service.version,
        "supported_visa_types": evaluation_service.document_service.supported_visa_types()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("visa_eval.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
