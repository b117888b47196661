# server/app/main.py

import  uvicorn

from    fastapi                     import FastAPI
from    .routes                     import router, system_router
from    .errors                     import add_exception_handlers

from    config                      import constants, credentials
from    utils.logger                import getLogger
from    database.db                 import init_db, DATABASE_URL

app     = FastAPI(title="Smart Irrigation Server", version=constants.SERVER_VERSION)
logger  = getLogger("IrrigationServer")

add_exception_handlers(app)
app.include_router(router, prefix=credentials.API_PREFIX)
app.include_router(system_router, prefix=credentials.API_PREFIX)

@app.on_event("startup")
async def startup_event():
    init_db()                                                       # Create tables if missing
    logger.info(f"Environment: {credentials.ENVIRONMENT}")
    logger.info(f"Database: {DATABASE_URL.split('@')[-1]}")
    logger.info(f"API base: {credentials.API_PREFIX}")

def start():
    """Run the server with uvicorn."""
    uvicorn.run(app, host=credentials.HOST, port=credentials.PORT)

if __name__ == "__main__":
    start()
