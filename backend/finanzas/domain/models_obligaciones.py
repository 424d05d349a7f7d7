"""
Modelos de Obligaciones (Ventas y Gastos)

Invariantes:
- total = pagado + saldo_pendiente (con tolerancia de 1 centavo)
- saldo_pendiente >= 0
- pagado = SUM(aplicaciones_pago.monto_aplicado) de la obligación
"""
from sqlalchemy import Integer, String, Date, Numeric, ForeignKey, DateTime, Text, CheckConstraint, Index
from datetime import datetime, date
from decimal import Decimal
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base
from .enums import EstadoPago


class Venta(Base):
    __tablename__ = "ventas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fecha_venta: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_cliente: Mapped[int] = mapped_column(ForeignKey("clientes.id"), nullable=False, index=True)
    canal: Mapped[str] = mapped_column(String(10), default="POS")  # CanalVenta
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda: Mapped[str] = mapped_column(String(3), default="UYU")
    fecha_vencimiento: Mapped[date | None] = mapped_column(Date, nullable=True)
    saldo_pendiente: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    estado: Mapped[str] = mapped_column(String(20), default=EstadoPago.PENDIENTE.value)
    nota: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    cliente = relationship("Cliente")

    __table_args__ = (
        CheckConstraint("saldo_pendiente >= 0", name="ck_ventas_saldo_no_negativo"),
        CheckConstraint(
            "estado IN ('PAGO PENDIENTE','PAGO PARCIAL','PAGO','CANCELADO')",
            name="ck_ventas_estado",
        ),
        Index("idx_ventas_cliente_fecha", "id_cliente", "fecha_venta", "id"),
    )


class Gasto(Base):
    __tablename__ = "gastos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fecha: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    id_categoria: Mapped[int] = mapped_column(ForeignKey("categorias_gasto.id"), nullable=False, index=True)
    id_subcategoria: Mapped[int | None] = mapped_column(ForeignKey("categorias_gasto.id"), nullable=True)
    proveedor: Mapped[str | None] = mapped_column(String(200), nullable=True)
    num_comprobante: Mapped[str | None] = mapped_column(String(50), nullable=True)
    monto_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    moneda: Mapped[str] = mapped_column(String(3), nullable=False)
    fecha_vencimiento: Mapped[date | None] = mapped_column(Date, nullable=True)
    saldo_pendiente: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    estado: Mapped[str] = mapped_column(String(20), default=EstadoPago.PENDIENTE.value)
    nota: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    categoria = relationship("CategoriaGasto", foreign_keys=[id_categoria])
    subcategoria = relationship("CategoriaGasto", foreign_keys=[id_subcategoria])

    __table_args__ = (
        CheckConstraint("saldo_pendiente >= 0", name="ck_gastos_saldo_no_negativo"),
        CheckConstraint(
            "estado IN ('PAGO PENDIENTE','PAGO PARCIAL','PAGO')",
            name="ck_gastos_estado",
        ),
    )
