"""Modelos ORM (SQLAlchemy) do quadro de lotação e do log de integrações."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ──────────────────────────────────────────────────────────────────────────────
# Quadro de lotação
# ──────────────────────────────────────────────────────────────────────────────


class CompanyRow(Base):
    __tablename__ = "empresas"

    id = Column(String(64), primary_key=True)
    nome = Column(String(255), nullable=False)
    # permitir | alertar | bloquear | exigir_aprovacao
    acao_cargo_discrepante = Column(String(32), nullable=True)


class StaffingPlanRow(Base):
    __tablename__ = "planos_vagas"

    id = Column(String(64), primary_key=True)
    empresa_id = Column(String(64), ForeignKey("empresas.id"), nullable=False, index=True)
    nome = Column(String(255), nullable=False)


class HeadcountRow(Base):
    __tablename__ = "quadro_lotacao"
    __table_args__ = (Index("ix_quadro_posto_cargo", "posto_trabalho_id", "cargo_id"),)

    id = Column(String(64), primary_key=True)
    plano_vagas_id = Column(String(64), ForeignKey("planos_vagas.id"), nullable=False, index=True)
    posto_trabalho_id = Column(String(64), nullable=False)
    cargo_id = Column(String(64), nullable=False)
    cargo_vaga = Column(String(64), nullable=True)
    vagas_previstas = Column(Integer, nullable=False, default=0)
    vagas_efetivas = Column(Integer, nullable=False, default=0)
    vagas_reservadas = Column(Integer, nullable=False, default=0)
    data_inicio_controle = Column(Date, nullable=True)
    tipo_controle = Column(String(16), nullable=False, default="diario")
    ativo = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    updated_by = Column(String(64), nullable=True)


class ColaboradorRow(Base):
    """Cadastro de colaboradores (somente leitura, usado no recálculo)."""

    __tablename__ = "colaboradores"

    id = Column(String(64), primary_key=True)
    centro_custo_id = Column(String(64), nullable=False, index=True)
    cargo_id = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False, default="ativo")


# ──────────────────────────────────────────────────────────────────────────────
# Log de integrações
# ──────────────────────────────────────────────────────────────────────────────


class IntegrationEventRow(Base):
    __tablename__ = "integration_events"
    __table_args__ = (Index("ix_integration_events_service_ts", "service_name", "timestamp"),)

    id = Column(String(36), primary_key=True)
    service_name = Column(String(100), nullable=False)
    event_type = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False)
    payload = Column(JSON, nullable=True)
    response_time_ms = Column(Float, nullable=False, default=0.0)
    error_message = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    correlation_id = Column(String(64), nullable=True, index=True)


class IntegrationStatusRow(Base):
    __tablename__ = "integration_statuses"

    service_name = Column(String(100), primary_key=True)
    status = Column(String(16), nullable=False, default="unknown")
    total_calls = Column(Integer, nullable=False, default=0)
    successful_calls = Column(Integer, nullable=False, default=0)
    failed_calls = Column(Integer, nullable=False, default=0)
    consecutive_failures = Column(Integer, nullable=False, default=0)
    average_response_time_ms = Column(Float, nullable=False, default=0.0)
    error_rate = Column(Float, nullable=False, default=0.0)
    last_successful_call = Column(DateTime(timezone=True), nullable=True)
    last_failed_call = Column(DateTime(timezone=True), nullable=True)
    last_health_check = Column(DateTime(timezone=True), nullable=True)
    tracking_since = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class IntegrationAlertRow(Base):
    __tablename__ = "integration_alerts"

    id = Column(String(36), primary_key=True)
    service_name = Column(String(100), nullable=False, index=True)
    alert_type = Column(String(32), nullable=False)
    severity = Column(String(16), nullable=False)
    message = Column(Text, nullable=False)
    threshold = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(String(64), nullable=True)


class ReprocessingRequestRow(Base):
    __tablename__ = "reprocessing_requests"

    id = Column(String(36), primary_key=True)
    original_event_id = Column(String(36), nullable=False, index=True)
    service_name = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    requested_by = Column(String(64), nullable=False)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
