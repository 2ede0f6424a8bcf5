from sqlalchemy.orm import declarative_base

# Tables owned and migrated by this service
Base = declarative_base()

# Read-only mappings of tables owned by the invoice service; never migrated here
ExternalBase = declarative_base()
