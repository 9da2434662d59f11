'''
Settings for gpkgrel, loaded from the environment (prefix ``GPKGREL_``).

.. code-block:: sh

    GPKGREL_ECHO=true GPKGREL_PROGRESS=true python ...

The module-level ``settings`` instance is used whenever a Database or Manager isn't
handed an explicit ``Settings`` object.
'''
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='GPKGREL_')

    echo: bool = Field(
        default=False,
        description='Echo emitted SQL on engines created by gpkgrel',
    )
    extension_definition: str = Field(
        default='http://www.geopackage.org/18-000.html',
        description='Definition URI written into related tables extension records',
    )
    progress: bool = Field(
        default=False,
        description='Show a progress bar while tearing down the extension',
    )


settings = Settings()
