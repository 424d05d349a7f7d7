"""
Modelos de Ajustes Financieros

Un ajuste es un movimiento fuera del flujo normal de ventas/gastos
(ej: bonificación bancaria). Se crea ACTIVO y puede anularse (ANULADO),
sin vuelta atrás. Anular NO modifica saldos de ventas ni gastos.
"""
from sqlalchemy import Integer, String, Boolean, Numeric, ForeignKey, DateTime, Text, CheckConstraint
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base
from .enums import EstadoRegistro


class DimAjusteFinanciero(Base):
    """Tipo de ajuste (dimensión) con su naturaleza INGRESO/EGRESO"""
    __tablename__ = "dim_ajustes_financieros"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    codigo: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    descripcion: Mapped[str] = mapped_column(String(200), nullable=False)
    naturaleza: Mapped[str] = mapped_column(String(10), nullable=False)  # Naturaleza
    activo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


class AjusteFinanciero(Base):
    __tablename__ = "ajustes_financieros"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fecha: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_tipo_ajuste: Mapped[int] = mapped_column(ForeignKey("dim_ajustes_financieros.id"), nullable=False)
    monto: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda: Mapped[str] = mapped_column(String(3), nullable=False)
    id_cuenta: Mapped[int | None] = mapped_column(ForeignKey("cuentas_dinero.id"), nullable=True)
    referencia: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nota: Mapped[str | None] = mapped_column(Text, nullable=True)
    estado: Mapped[str] = mapped_column(String(10), default=EstadoRegistro.ACTIVO.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    tipo_ajuste = relationship("DimAjusteFinanciero")
    cuenta = relationship("CuentaDinero")
    detalle = relationship("AjusteDetalle", back_populates="ajuste", order_by="AjusteDetalle.id")


class AjusteDetalle(Base):
    __tablename__ = "ajustes_detalle"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_ajuste: Mapped[int] = mapped_column(ForeignKey("ajustes_financieros.id"), nullable=False, index=True)
    id_venta: Mapped[int | None] = mapped_column(ForeignKey("ventas.id"), nullable=True, index=True)
    id_gasto: Mapped[int | None] = mapped_column(ForeignKey("gastos.id"), nullable=True, index=True)
    monto_aplicado: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    porcentaje: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    base_calculo: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    fecha_aplicacion: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    ajuste = relationship("AjusteFinanciero", back_populates="detalle")

    __table_args__ = (
        CheckConstraint(
            "(id_venta IS NOT NULL AND id_gasto IS NULL) OR (id_venta IS NULL AND id_gasto IS NOT NULL)",
            name="ck_ajustes_detalle_una_obligacion",
        ),
    )
