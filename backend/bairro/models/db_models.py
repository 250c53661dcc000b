"""
Bairro - SQLAlchemy ORM Models

Column names are the ones the mobile clients send and read back, so the
attribute names are English while the table keeps its original shape.
"""
from datetime import datetime
from sqlalchemy import Column, String, Float, DateTime, Boolean, Index
from ..database import Base


class OccurrenceDB(Base):
    """One citizen-submitted occurrence report."""
    __tablename__ = "ocorrencias"

    row_id = Column("table_row_uuid", String(36), primary_key=True)  # UUID, server assigned
    device_id = Column("uuid", String(100), nullable=False)
    is_production = Column("PROD", Boolean, nullable=False, default=True)

    # Photo slots - filenames in the photo store, empty string when unused
    photo1 = Column("foto1", String(255), default="")
    photo2 = Column("foto2", String(255), default="")
    photo3 = Column("foto3", String(255), default="")
    photo4 = Column("foto4", String(255), default="")

    # As submitted by the client, not server timestamps
    submitted_date = Column("data_data", String(10))  # YYYY-MM-DD
    submitted_time = Column("data_hora", String(8))  # HH:MM

    municipality = Column("data_concelho", String(100))
    parish = Column("data_freguesia", String(100))
    street = Column("data_local", String(255))
    door_number = Column("data_num_porta", String(20))
    latitude = Column("data_coord_latit", Float)
    longitude = Column("data_coord_long", Float)

    main_anomaly = Column("anomaly1", String(255))
    secondary_anomaly = Column("anomaly2", String(255))
    anomaly_code = Column("anomaly_code", String(50))

    municipality_email = Column("email_concelho", String(255))
    parish_email = Column("email_freguesia", String(255))

    # ==========================================================================
    # RESOLUTION STATUS
    # ==========================================================================
    # The user decision has priority and is tracked apart from the authorities
    resolved = Column("ocorrencia_resolvida", Boolean, nullable=False, default=False)
    resolved_by_user = Column("ocorrencia_resolvida_por_op", Boolean, nullable=False, default=False)
    resolved_by_municipality = Column("ocorrencia_resolvida_por_municipio", Boolean, nullable=False, default=False)
    resolved_by_parish = Column("ocorrencia_resolvida_por_freguesia", Boolean, nullable=False, default=False)
    resolved_by_other_users = Column(
        "ocorrencia_resolvida_por_utilizadores_adicionais", Boolean, nullable=False, default=False
    )

    # ==========================================================================
    # SOFT DELETE - only ever set to true
    # ==========================================================================
    deleted_by_admin = Column("deleted_by_admin", Boolean, nullable=False, default=False)
    deleted_by_user = Column("deleted_by_user", Boolean, nullable=False, default=False)
    deleted_by_system = Column("deleted_by_sys", Boolean, nullable=False, default=False)

    # Confirmation keys, authority keys exist only when that email was given
    user_key = Column("chave_confirmacao_ocorrencia_resolvida_por_op", String(16))
    municipality_key = Column("chave_confirmacao_ocorrencia_resolvida_por_municipio", String(16), nullable=True)
    parish_key = Column("chave_confirmacao_ocorrencia_resolvida_por_freguesia", String(16), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_ocorrencias_sweep", "uuid", "data_data", "data_hora"),
    )
