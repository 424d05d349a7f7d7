"""
Modelo de Cambio de Moneda / Transferencia entre cuentas

Se crea y no se modifica. Solo los cambios ACTIVO cuentan en el saldo de las cuentas.
"""
from sqlalchemy import Integer, String, Numeric, ForeignKey, DateTime, Text, CheckConstraint
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base
from .enums import EstadoRegistro


class CambioMoneda(Base):
    __tablename__ = "cambios_moneda"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fecha_cambio: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_cuenta_origen: Mapped[int] = mapped_column(ForeignKey("cuentas_dinero.id"), nullable=False, index=True)
    id_cuenta_destino: Mapped[int] = mapped_column(ForeignKey("cuentas_dinero.id"), nullable=False, index=True)
    monto_origen: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda_origen: Mapped[str] = mapped_column(String(3), nullable=False)
    monto_destino: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda_destino: Mapped[str] = mapped_column(String(3), nullable=False)
    factor_conversion: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    nota: Mapped[str | None] = mapped_column(Text, nullable=True)
    estado: Mapped[str] = mapped_column(String(10), default=EstadoRegistro.ACTIVO.value)

    cuenta_origen = relationship("CuentaDinero", foreign_keys=[id_cuenta_origen])
    cuenta_destino = relationship("CuentaDinero", foreign_keys=[id_cuenta_destino])

    __table_args__ = (
        CheckConstraint("id_cuenta_origen <> id_cuenta_destino", name="ck_cambios_cuentas_distintas"),
        CheckConstraint("monto_origen > 0 AND monto_destino > 0", name="ck_cambios_montos_positivos"),
    )
