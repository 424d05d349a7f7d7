from enum import Enum

class EstadoPago(str, Enum):
    PENDIENTE = "PAGO PENDIENTE"
    PARCIAL = "PAGO PARCIAL"
    PAGADO = "PAGO"
    CANCELADO = "CANCELADO"  # Solo ventas

class TipoObligacion(str, Enum):
    VENTA = "VENTA"  # Deuda a favor del negocio
    GASTO = "GASTO"  # Deuda del negocio

class EstrategiaAplicacion(str, Enum):
    DIRECT = "DIRECT"  # Todo el pago a una obligación
    FIFO = "FIFO"      # Obligaciones pendientes del pagador, la más antigua primero

class ModoCobro(str, Enum):
    FULL = "FULL"        # Acepta pagos mayores a la deuda (el excedente no se aplica)
    PARTIAL = "PARTIAL"  # Rechaza pagos mayores a la deuda

class EscenarioPago(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"
    NONE = "NONE"

class TipoTransaccion(str, Enum):
    INGRESO = "INGRESO"  # Cobro a cliente
    EGRESO = "EGRESO"    # Pago de gasto

class EstadoRegistro(str, Enum):
    ACTIVO = "ACTIVO"
    ANULADO = "ANULADO"

class TipoCuenta(str, Enum):
    CASH = "CASH"
    BANK = "BANK"

class MonedaInput(str, Enum):
    ORIGEN = "ORIGEN"
    DESTINO = "DESTINO"

class Naturaleza(str, Enum):
    INGRESO = "INGRESO"
    EGRESO = "EGRESO"

class CanalVenta(str, Enum):
    POS = "POS"
    PEDIDO = "PEDIDO"
