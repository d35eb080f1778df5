from sqlmodel import SQLModel, Session, create_engine

from config.settings import DATABASE_URL


# SQLite needs cross-thread access because FastAPI runs sync dependencies in a threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)


# Dependency to get DB session in routes
def get_session():
    with Session(engine) as session:
        yield session


# Function to create tables
def init_db():
    # registers the table classes on the metadata
    import db.models  # noqa: F401

    SQLModel.metadata.create_all(bind=engine)
