"""
Modelos de Transacciones de Pago y Aplicaciones

- Una transacción es un ingreso (cobro a cliente) o un egreso (pago de gasto)
  contra una cuenta de dinero resuelta por método de pago + moneda.
- Una aplicación vincula una transacción con UNA obligación (venta o gasto).
  Una transacción puede aplicarse a varias obligaciones y una obligación puede
  recibir aplicaciones de varias transacciones.
"""
from sqlalchemy import Integer, String, Numeric, ForeignKey, DateTime, Text, CheckConstraint, Index
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base
from .enums import EstadoRegistro


class TransaccionPago(Base):
    __tablename__ = "transacciones_pago"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tipo: Mapped[str] = mapped_column(String(10), nullable=False)  # TipoTransaccion
    fecha: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_cliente: Mapped[int | None] = mapped_column(ForeignKey("clientes.id"), nullable=True, index=True)
    monto: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda: Mapped[str] = mapped_column(String(3), nullable=False)
    metodo_pago: Mapped[str] = mapped_column(String(20), nullable=False)
    referencia: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nota: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_cuenta: Mapped[int] = mapped_column(ForeignKey("cuentas_dinero.id"), nullable=False, index=True)
    estado: Mapped[str] = mapped_column(String(10), default=EstadoRegistro.ACTIVO.value)

    cuenta = relationship("CuentaDinero")
    aplicaciones = relationship("AplicacionPago", back_populates="transaccion", order_by="AplicacionPago.id")

    __table_args__ = (
        CheckConstraint("monto > 0", name="ck_transacciones_monto_positivo"),
    )


class AplicacionPago(Base):
    __tablename__ = "aplicaciones_pago"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id_transaccion: Mapped[int] = mapped_column(ForeignKey("transacciones_pago.id"), nullable=False, index=True)
    id_venta: Mapped[int | None] = mapped_column(ForeignKey("ventas.id"), nullable=True)
    id_gasto: Mapped[int | None] = mapped_column(ForeignKey("gastos.id"), nullable=True)
    monto_aplicado: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    fecha_aplicacion: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    transaccion = relationship("TransaccionPago", back_populates="aplicaciones")

    __table_args__ = (
        # Exactamente una obligación: venta o gasto, nunca ambas ni ninguna
        CheckConstraint(
            "(id_venta IS NOT NULL AND id_gasto IS NULL) OR (id_venta IS NULL AND id_gasto IS NOT NULL)",
            name="ck_aplicaciones_una_obligacion",
        ),
        CheckConstraint("monto_aplicado > 0", name="ck_aplicaciones_monto_positivo"),
        Index("idx_aplicaciones_venta", "id_venta"),
        Index("idx_aplicaciones_gasto", "id_gasto"),
    )
