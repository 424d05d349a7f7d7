from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from ..domain.enums import EstrategiaAplicacion, ModoCobro, TipoObligacion, CanalVenta

# ===== ENTRADA =====
# Los DTO solo fijan tipos. Las reglas (montos > 0, métodos válidos, etc.)
# las validan los servicios para devolver todos los errores juntos.

class LineaPagoIn(BaseModel):
    monto: Decimal
    metodo_pago: str
    moneda: Optional[str] = None  # Default: moneda de la obligación
    referencia: Optional[str] = None
    nota: Optional[str] = None

class RegistrarPagoIn(BaseModel):
    tipo: TipoObligacion = TipoObligacion.VENTA
    estrategia: EstrategiaAplicacion
    id_cliente: Optional[int] = None
    id_obligacion: Optional[int] = None  # Requerido en DIRECT
    modo: ModoCobro = ModoCobro.FULL
    lineas: List[LineaPagoIn]

class PagarObligacionIn(BaseModel):
    id_gasto: int
    lineas: List[LineaPagoIn]

class VentaIn(BaseModel):
    id_cliente: int
    total: Decimal
    moneda: Optional[str] = None  # Default: moneda local
    canal: CanalVenta = CanalVenta.POS
    fecha: Optional[datetime] = None
    fecha_vencimiento: Optional[date] = None
    nota: Optional[str] = None
    lineas: List[LineaPagoIn] = []

class GastoIn(BaseModel):
    fecha: Optional[datetime] = None
    monto_total: Optional[Decimal] = None
    moneda: Optional[str] = None
    id_categoria: Optional[int] = None
    id_subcategoria: Optional[int] = None
    proveedor: Optional[str] = None
    num_comprobante: Optional[str] = None
    fecha_vencimiento: Optional[date] = None
    nota: Optional[str] = None
    lineas: List[LineaPagoIn] = []

class GastosBatchIn(BaseModel):
    gastos: List[GastoIn]

class CambioIn(BaseModel):
    id_cuenta_origen: int
    id_cuenta_destino: int
    monto_input: Decimal
    moneda_input: str  # MonedaInput: ORIGEN | DESTINO
    factor_conversion: Decimal = Decimal("1")
    nota: Optional[str] = None

class DimensionIn(BaseModel):
    codigo: str = ""
    descripcion: str = ""
    naturaleza: str = ""
    activo: Optional[bool] = None

class DetalleAjusteIn(BaseModel):
    id_gasto: Optional[int] = None
    id_venta: Optional[int] = None
    monto_aplicado: Decimal
    porcentaje: Optional[Decimal] = None
    base_calculo: Optional[Decimal] = None

class AjusteIn(BaseModel):
    id_tipo_ajuste: Optional[int] = None
    monto: Decimal
    moneda: Optional[str] = None
    id_cuenta: Optional[int] = None
    referencia: Optional[str] = None
    nota: Optional[str] = None
    fecha: Optional[datetime] = None
    detalle: List[DetalleAjusteIn] = []

class BonificacionIn(BaseModel):
    monto_bonificacion: Decimal
    id_gasto: Optional[int] = None  # Requerido si el pago se aplicó a varios gastos
    id_cuenta: Optional[int] = None
    nota: Optional[str] = None

# ===== SALIDA =====

class EstadoObligacionOut(BaseModel):
    tipo: TipoObligacion
    id: int
    moneda: str
    total: Decimal
    pagado: Decimal
    pendiente: Decimal
    estado: str

class ObligacionPendienteOut(BaseModel):
    tipo: TipoObligacion
    id: int
    fecha: datetime
    moneda: str
    total: Decimal
    saldo_pendiente: Decimal
    estado: str
    fecha_vencimiento: Optional[date] = None
    id_cliente: Optional[int] = None

class TransaccionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tipo: str
    fecha: datetime
    id_cliente: Optional[int] = None
    monto: Decimal
    moneda: str
    metodo_pago: str
    referencia: Optional[str] = None
    nota: Optional[str] = None
    id_cuenta: int
    estado: str

class AplicacionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_transaccion: int
    id_venta: Optional[int] = None
    id_gasto: Optional[int] = None
    monto_aplicado: Decimal
    fecha_aplicacion: datetime

class ObligacionActualizadaOut(BaseModel):
    tipo: TipoObligacion
    id: int
    saldo_anterior: Decimal
    monto_aplicado: Decimal
    saldo_nuevo: Decimal
    estado_nuevo: str

class ResultadoPago(BaseModel):
    transacciones: List[TransaccionOut]
    aplicaciones: List[AplicacionOut]
    obligaciones_actualizadas: List[ObligacionActualizadaOut]
    total_pagado: Decimal
    total_aplicado: Decimal
    remanente_no_aplicado: Decimal

class ObligacionCreadaOut(BaseModel):
    tipo: TipoObligacion
    id: int
    moneda: str
    total: Decimal
    saldo_pendiente: Decimal
    estado: str
    escenario: str
    fecha_vencimiento: Optional[date] = None
    transacciones: List[TransaccionOut] = []
    aplicaciones: List[AplicacionOut] = []

class VentaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fecha_venta: datetime
    id_cliente: int
    canal: str
    total: Decimal
    moneda: str
    fecha_vencimiento: Optional[date] = None
    saldo_pendiente: Decimal
    estado: str
    nota: Optional[str] = None

class VentaDetalleOut(VentaOut):
    cliente_nombre: str
    aplicaciones: List[AplicacionOut] = []

class GastoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fecha: datetime
    id_categoria: int
    id_subcategoria: Optional[int] = None
    proveedor: Optional[str] = None
    num_comprobante: Optional[str] = None
    monto_total: Decimal
    moneda: str
    fecha_vencimiento: Optional[date] = None
    saldo_pendiente: Decimal
    estado: str

class HistorialPagoOut(BaseModel):
    id_transaccion: int
    id_aplicacion: int
    fecha: datetime
    metodo_pago: str
    cuenta: str
    monto_transaccion: Decimal
    monto_aplicado: Decimal
    id_venta: Optional[int] = None
    id_gasto: Optional[int] = None
    referencia: Optional[str] = None
    nota: Optional[str] = None

class ClienteDeudaOut(BaseModel):
    id_cliente: int
    cliente_nombre: str
    moneda: str
    saldo_pendiente: Decimal
    ventas_pendientes: int

class CuentaSaldoOut(BaseModel):
    id: int
    nombre: str
    tipo: str
    moneda: str
    activa: bool
    saldo: Decimal

class ResultadoCambio(BaseModel):
    id_cambio: int
    fecha_cambio: datetime
    cuenta_origen: str
    cuenta_destino: str
    monto_origen: Decimal
    moneda_origen: str
    monto_destino: Decimal
    moneda_destino: str
    factor_conversion: Decimal
    saldo_anterior_origen: Decimal
    saldo_nuevo_origen: Decimal

class CambioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fecha_cambio: datetime
    id_cuenta_origen: int
    id_cuenta_destino: int
    monto_origen: Decimal
    moneda_origen: str
    monto_destino: Decimal
    moneda_destino: str
    factor_conversion: Decimal
    nota: Optional[str] = None
    estado: str

class DimensionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    codigo: str
    descripcion: str
    naturaleza: str
    activo: bool

class DetalleAjusteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_ajuste: int
    id_venta: Optional[int] = None
    id_gasto: Optional[int] = None
    monto_aplicado: Decimal
    porcentaje: Optional[Decimal] = None
    base_calculo: Optional[Decimal] = None
    fecha_aplicacion: datetime

class AjusteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fecha: datetime
    id_tipo_ajuste: int
    monto: Decimal
    moneda: str
    id_cuenta: Optional[int] = None
    referencia: Optional[str] = None
    nota: Optional[str] = None
    estado: str
    detalle: List[DetalleAjusteOut] = []
