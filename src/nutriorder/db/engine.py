"""
Database connection handling for the food ordering back end.
"""
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from nutriorder.config import Config

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_connection_string(db_config):
    if db_config['type'] == 'sqlite':
        return f"sqlite:///{db_config['name']}"
    elif db_config['type'] == 'postgresql':
        return f"postgresql+psycopg2://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    elif db_config['type'] == 'mysql':
        return f"mysql+pymysql://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    raise ValueError(f"Unsupported database type: {db_config['type']}")


def create_db_engine(config=None):
    """
    Create the SQLAlchemy engine described by the DATABASE config section.
    """
    try:
        if config is None:
            config = Config()

        db_config = config.get_database_config()
        connection_string = build_connection_string(db_config)

        engine = create_engine(connection_string)
        if db_config['type'] == 'sqlite':
            event.listen(engine, 'connect', _enable_sqlite_foreign_keys)

        logger.info(f"Database connection created for {db_config['type']}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database connection: {str(e)}")
        raise


def create_session(engine):
    """
    Create a SQLAlchemy session for the engine.
    """
    Session = sessionmaker(bind=engine)
    return Session()


def init_db(engine, base):
    """
    Initialize database tables.
    """
    base.metadata.create_all(engine)
    logger.info("Database tables initialized")
