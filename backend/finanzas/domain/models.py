"""
Modelos del Dominio - Catálogos y Cuentas de Dinero

Las cuentas NO guardan saldo: el saldo se deriva en tiempo real de las
transacciones, cambios y ajustes que las referencian.
"""
from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime
from datetime import datetime
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base


class Cliente(Base):
    __tablename__ = "clientes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    apellido: Mapped[str | None] = mapped_column(String(100), nullable=True)
    telefono: Mapped[str | None] = mapped_column(String(30), nullable=True)
    direccion: Mapped[str | None] = mapped_column(String(300), nullable=True)

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}" if self.apellido else self.nombre


class CategoriaGasto(Base):
    """Categoría de gasto. Una sub-categoría apunta a su categoría padre."""
    __tablename__ = "categorias_gasto"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    id_padre: Mapped[int | None] = mapped_column(ForeignKey("categorias_gasto.id"), nullable=True)
    activa: Mapped[bool] = mapped_column(Boolean, default=True)

    padre = relationship("CategoriaGasto", remote_side=[id])


class CuentaDinero(Base):
    """
    Cuenta de dinero (caja o banco) en una moneda fija.

    El nombre sigue la convención "<TIPO> <MONEDA>" (ej: "CASH UYU", "BANK USD")
    y es la clave que usa el resolvedor de cuentas.
    """
    __tablename__ = "cuentas_dinero"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nombre: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    tipo: Mapped[str] = mapped_column(String(10), nullable=False)  # TipoCuenta
    moneda: Mapped[str] = mapped_column(String(3), nullable=False)
    activa: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
