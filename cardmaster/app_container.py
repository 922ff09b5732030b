# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# del almacén, el estado y los servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se puede pasar un MemoryStore)
#   - Cambiar el almacén sin tocar servicios
#
# ARRANQUE:
#   1. Se crea el almacén (JsonFileStore en DATA_DIR, o el store inyectado)
#   2. StateService carga las siete claves sobre el estado por defecto
#   3. Las contraseñas en texto plano se migran a hash
# ==============================================================================

from typing import Optional

from cardmaster import config
from cardmaster.repositories import BaseStore, JsonFileStore, StateRepository
from cardmaster.seed import build_default_state
from cardmaster.services import (
    CustomerService,
    ExportService,
    NotificationService,
    StateService,
    StatsService,
    TaskService,
    TransactionService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada servicio (y por lo tanto un único AppState en memoria).

    Uso:
        container = AppContainer(base_path='/var/lib/cardmaster')
        tx_service = container.transaction_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, store: BaseStore = None,
                sample_count: int = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None, store: BaseStore = None,
                 sample_count: int = None):
        """
        Inicializa el contenedor.

        Args:
            base_path: Carpeta de los archivos JSON (por defecto config.DATA_DIR)
            store: Almacén ya construido (tiene prioridad sobre base_path)
            sample_count: Transacciones de ejemplo si no hay datos guardados
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self._sample_count = config.SAMPLE_TRANSACTIONS if sample_count is None else sample_count

        # Inicialización perezosa (lazy loading)
        self._store: Optional[BaseStore] = store
        self._state_repo: Optional[StateRepository] = None
        self._state_service: Optional[StateService] = None

        self._customer_service: Optional[CustomerService] = None
        self._transaction_service: Optional[TransactionService] = None
        self._notification_service: Optional[NotificationService] = None
        self._task_service: Optional[TaskService] = None
        self._user_service: Optional[UserService] = None
        self._stats_service: Optional[StatsService] = None
        self._export_service: Optional[ExportService] = None

        self._initialized = True

    # =========================================================================
    # PERSISTENCIA
    # =========================================================================

    @property
    def store(self) -> BaseStore:
        """Almacén clave-valor (singleton)."""
        if self._store is None:
            self._store = JsonFileStore(self._base_path)
        return self._store

    @property
    def state_repo(self) -> StateRepository:
        if self._state_repo is None:
            self._state_repo = StateRepository(self.store)
        return self._state_repo

    @property
    def state_service(self) -> StateService:
        """
        Contenedor de estado (singleton).

        Al crearse carga los datos guardados y migra contraseñas legacy.
        """
        if self._state_service is None:
            self._state_service = StateService(
                self.state_repo,
                build_default_state(self._sample_count)
            )
            result = UserService(self._state_service).migrate_passwords_to_hash()
            if result['migrated_count']:
                print(f"[SEGURIDAD] {result['migrated_count']} contraseñas migradas a hash")
        return self._state_service

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def customer_service(self) -> CustomerService:
        if self._customer_service is None:
            self._customer_service = CustomerService(self.state_service)
        return self._customer_service

    @property
    def transaction_service(self) -> TransactionService:
        if self._transaction_service is None:
            self._transaction_service = TransactionService(
                self.state_service,
                self.customer_service
            )
        return self._transaction_service

    @property
    def notification_service(self) -> NotificationService:
        if self._notification_service is None:
            self._notification_service = NotificationService(self.state_service)
        return self._notification_service

    @property
    def task_service(self) -> TaskService:
        if self._task_service is None:
            self._task_service = TaskService(
                self.state_service,
                self.notification_service
            )
        return self._task_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.state_service)
        return self._user_service

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(
                lambda: self.state_service.state.transactions
            )
        return self._stats_service

    @property
    def export_service(self) -> ExportService:
        if self._export_service is None:
            self._export_service = ExportService(self.transaction_service)
        return self._export_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        El próximo acceso vuelve a cargar el estado desde el almacén.
        """
        self._state_repo = None
        self._state_service = None

        self._customer_service = None
        self._transaction_service = None
        self._notification_service = None
        self._task_service = None
        self._user_service = None
        self._stats_service = None
        self._export_service = None

    @classmethod
    def get_instance(cls, base_path: str = None, store: BaseStore = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Ruta de datos (solo se usa en primera llamada)
            store: Almacén inyectado (solo se usa en primera llamada)

        Returns:
            Instancia del contenedor
        """
        if cls._instance is None:
            return cls(base_path, store)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(base_path: str = None, store: BaseStore = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Carpeta de datos
        store: Almacén inyectado (tests)

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(base_path, store)
