from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from starlette.requests import Request
from dotenv import load_dotenv
import logging
import sys

from routes.quiz_routes import router as quiz_router
from routes.template_routes import router as template_router
from utils.exceptions import QuizServiceError, GenerationError, InsufficientContentError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

load_dotenv()

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate quiz, please try again"

app = FastAPI(title="AI Quiz Service")


@app.exception_handler(QuizServiceError)
async def quiz_service_exception_handler(request: Request, exc: QuizServiceError):
    if isinstance(exc, GenerationError):
        # Upstream status and message stay in the logs
        logger.error(f"Quiz generation failed on {request.url.path}: [{exc.error_code}] {exc.message} {exc.context}")
        content = {
            "error": exc.error_code,
            "message": GENERATION_FAILED_MESSAGE,
            "status_code": exc.status_code,
            "context": {},
        }
    else:
        content = {
            "error": exc.error_code,
            "message": exc.message,
            "status_code": exc.status_code,
            "context": exc.context,
        }
        if isinstance(exc, InsufficientContentError):
            content["reasons"] = exc.reasons
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(content))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz_router)
app.include_router(template_router)


@app.get("/")
async def root():
    return {"greeting": "Hello!", "message": "Welcome to the AI Quiz Service!"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
