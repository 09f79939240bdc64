from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
import logging
import uvicorn
import os

load_dotenv()

from acessivision.api.routes import upload, auth, plans, webhooks  # noqa: E402
from acessivision.database.connection import create_db_and_tables  # noqa: E402
from acessivision.services import (  # noqa: E402
    Describer,
    FileHandler,
    GoogleTranslator,
    IdentityProvider,
    MoondreamClient,
    PaymentClient,
    SpeechSynthesizer,
    UploadPipeline
)
from acessivision.utils.validators import max_file_size  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Inicializar banco de dados
    create_db_and_tables()
    print("✅ Database initialized")

    print("\n📋 Endpoints disponíveis:")
    print("   POST /auth/register - Criar usuário")
    print("   POST /auth/login - Fazer login")
    print("   PUT /auth/profile/{uid} - Atualizar perfil")
    print("   DELETE /auth/delete/{uid} - Deletar conta")
    print("   POST /upload - Processar imagem")
    print("   POST /upload/audio - Processar imagem (áudio)\n")

    yield

    # Cleanup
    for client in (app.state.captioner, app.state.payment_client):
        close = getattr(client, "close", None)
        if close:
            await close()


def create_app(
        translator=None,
        captioner=None,
        synthesizer=None,
        identity=None,
        payment_client=None,
        file_handler=None
) -> FastAPI:
    """Monta a aplicação; colaboradores podem ser injetados (ex.: testes)"""

    app = FastAPI(
        title="AcessiVision API",
        description="API de descrição acessível de imagens em português",
        version="1.0.0",
        lifespan=lifespan
    )

    file_handler = file_handler or FileHandler()
    captioner = captioner or MoondreamClient()
    describer = Describer(translator or GoogleTranslator(), captioner, file_handler)

    app.state.captioner = captioner
    app.state.pipeline = UploadPipeline(file_handler, describer, synthesizer or SpeechSynthesizer())
    app.state.identity = identity or IdentityProvider()
    app.state.payment_client = payment_client or PaymentClient()
    app.state.max_file_size = max_file_size()

    cors_origins = [o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Incluir rotas
    app.include_router(upload.router, tags=["upload"])
    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(plans.router, tags=["plans"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "message": "AcessiVision API",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("DEBUG", "false").lower() == "true"
    )
