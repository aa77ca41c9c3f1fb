from chatrelay.db import models  # noqa: F401
from chatrelay.db.base import Base
from chatrelay.db.session import engine

if __name__ == "__main__":
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created.")
