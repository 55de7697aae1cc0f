"""
Database schema metadata models.

These models describe the tables, columns and foreign keys read from
the SQL Server catalog views. They feed the schema summary that is
embedded in the model prompt.
"""

from pydantic import BaseModel, Field


class SchemaTable(BaseModel):
    """A user table from ``sys.tables``."""

    schema_name: str = Field(description="Owning schema (e.g., 'Sales')")
    name: str = Field(description="Table name (e.g., 'Orders')")
    description: str = Field(default="", description="MS_Description extended property")

    @property
    def full_name(self) -> str:
        """Return the ``Schema.Table`` form used throughout prompts."""
        return f"{self.schema_name}.{self.name}"


class SchemaColumn(BaseModel):
    """A column definition from ``sys.columns``."""

    schema_name: str = Field(description="Owning schema of the table")
    table_name: str = Field(description="Table the column belongs to")
    name: str = Field(description="Column name")
    data_type: str = Field(description="SQL Server type name (e.g., 'nvarchar')")
    max_length: int | None = Field(
        default=None, description="Character length (-1 for MAX, None when not applicable)"
    )
    ordinal_position: int = Field(default=0, description="1-based position within the table")
    is_nullable: bool = Field(default=True)
    is_primary_key: bool = Field(default=False)
    is_identity: bool = Field(default=False)
    description: str = Field(default="", description="MS_Description extended property")


class SchemaForeignKey(BaseModel):
    """A single-column foreign key relationship."""

    from_schema: str
    from_table: str
    from_column: str
    to_schema: str
    to_table: str
    to_column: str
