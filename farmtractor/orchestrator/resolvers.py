from __future__ import annotations

from loguru import logger

from farmtractor.core.errors import DevicePoolNotFoundError, NoDevicePoolsError, ValidationError
from farmtractor.core.result import Err, Ok, Result
from farmtractor.gateway.interfaces import DevicePoolsGateway, ProjectsGateway
from farmtractor.gateway.models import DevicePool, Project


class ProjectResolver:
    """Find a project by exact name, creating it when the account has none."""

    def __init__(self, projects: ProjectsGateway) -> None:
        self._projects = projects

    async def resolve(self, name: str) -> Result[Project]:
        if not name or not name.strip():
            return Err(ValidationError("The project name must not be empty"))

        logger.info("I will try to find the project {} or I will create it if not found", name)
        listed = await self._projects.list_projects()
        if isinstance(listed, Err):
            return listed
        project = next((item for item in listed.value if item.name == name), None)
        if project is not None:
            logger.info("I found the project {}, I will use it", name)
            return Ok(project)

        logger.info("I didn't find the project {}, I will create it", name)
        return await self._projects.create_project(name)


class DevicePoolResolver:
    def __init__(self, device_pools: DevicePoolsGateway) -> None:
        self._device_pools = device_pools

    async def resolve(self, project_arn: str, name: str = "") -> Result[DevicePool]:
        """Return the pool called ``name``, or the project's first pool when ``name`` is blank."""
        listed = await self._device_pools.list_device_pools(project_arn)
        if isinstance(listed, Err):
            return listed
        pools = listed.value

        if not name or not name.strip():
            logger.info("No device pool name was provided, I will use the first device pool of the project")
            if not pools:
                return Err(NoDevicePoolsError(f"The project {project_arn} does not have any device pool"))
            return Ok(pools[0])

        logger.info("I will try to find the {} device pool", name)
        pool = next((item for item in pools if item.name == name), None)
        if pool is None:
            return Err(DevicePoolNotFoundError(f"The device pool {name} was not found"))
        logger.info("I found the device pool {}, I will use it", name)
        return Ok(pool)
