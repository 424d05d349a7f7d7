from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator, field_validator

BASE_DIR = Path(__file__).resolve().parent.parent  # backend/

class Settings(BaseSettings):
    # ===== ENTORNO =====
    environment: str = Field(default="development", env="ENVIRONMENT")
    debug: bool = Field(default=False, env="DEBUG")

    # ===== DATABASE =====
    database_url: str = Field(default="sqlite:///./data/finanzas.db", env="DATABASE_URL")

    # ===== LOGGING =====
    log_dir: str = Field(default="logs", env="LOG_DIR")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # ===== CORS =====
    allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        env="ALLOWED_ORIGINS"
    )

    # ===== REGLAS DE CUENTAS Y MONEDAS =====
    # Factor de conversión = unidades de moneda local por unidad de moneda extranjera
    moneda_local: str = Field(default="UYU", env="MONEDA_LOCAL")
    moneda_extranjera: str = Field(default="USD", env="MONEDA_EXTRANJERA")
    metodo_efectivo: str = Field(default="EFECTIVO", env="METODO_EFECTIVO")
    prefijo_caja: str = Field(default="CASH", env="PREFIJO_CAJA")
    prefijo_banco: str = Field(default="BANK", env="PREFIJO_BANCO")
    metodos_pago_venta: str = Field(
        default="DEBITO,CREDITO,TRANSFERENCIA,EFECTIVO,OTROS",
        env="METODOS_PAGO_VENTA"
    )
    metodos_pago_gasto: str = Field(
        default="EFECTIVO,TRANSFERENCIA,DEBITO,OTROS",
        env="METODOS_PAGO_GASTO"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("moneda_local", "moneda_extranjera", "metodo_efectivo", "prefijo_caja", "prefijo_banco", mode="after")
    @classmethod
    def normalizar_codigo(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def validar_monedas(self):
        if self.moneda_local == self.moneda_extranjera:
            raise ValueError("MONEDA_LOCAL y MONEDA_EXTRANJERA deben ser distintas.")
        return self

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def metodos_pago_venta_list(self) -> list[str]:
        return [m.strip().upper() for m in self.metodos_pago_venta.split(",") if m.strip()]

    @property
    def metodos_pago_gasto_list(self) -> list[str]:
        return [m.strip().upper() for m in self.metodos_pago_gasto.split(",") if m.strip()]

    @property
    def log_path(self) -> Path:
        """
        Carpeta de logs.
        - Ruta relativa: se resuelve contra backend/
        - Ruta absoluta: se usa tal cual (Docker/VPS)
        """
        path = Path(self.log_dir)
        if path.is_absolute():
            return path
        return BASE_DIR / path


settings = Settings()
