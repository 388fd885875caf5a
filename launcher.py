import uvicorn
from store_ratings.settings import settings

uvicorn.run(
    "store_ratings.main:app",
    host="0.0.0.0",
    port=settings.PORT,
    log_level=str(settings.LOG_LEVEL).lower(),
)
