from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..host_spec import HostSpec
from ..provider_interface import IComputeProvider
from .cluster_expander import expand
from .config_resolver import resolve
from .instance_lifecycle import WaitOptions, get
from .instance_record import InstanceRecord
from .machine_config import ClusterDefaults, MachineTemplate
from .types import ErrorPolicy


@dataclass
class NodeResult:
    cluster_index: int
    record: InstanceRecord
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def provision_clusters(
    machines: Sequence[Tuple[MachineTemplate, int]],
    defaults: ClusterDefaults,
    provider_for_region: Callable[[str], IComputeProvider],
    *,
    policy: ErrorPolicy = ErrorPolicy.Abort,
    wait: Optional[WaitOptions] = None,
    log=logger,
) -> List[NodeResult]:
    """Bring every node of every cluster to running, one at a time and in order.

    With ``ErrorPolicy.Abort`` the first failed node stops the run; with
    ``ErrorPolicy.Continue`` the remaining nodes are still provisioned. Either way
    the results of all attempted nodes are returned in provisioning order.
    """
    providers: Dict[str, IComputeProvider] = {}
    results: List[NodeResult] = []

    for cluster_index, (template, nodes) in enumerate(machines, start=1):
        log.info(f"================ Running machines of {cluster_index}. cluster ================")
        resolved = resolve(template, defaults)

        if resolved.region not in providers:
            providers[resolved.region] = provider_for_region(resolved.region)
        provider = providers[resolved.region]

        records = expand(resolved, nodes)
        for i, record in enumerate(records, start=1):
            log.info(f"Running machine: {record.name}")
            try:
                get(provider, record, wait=wait, log=log)
            except Exception as e:
                results.append(NodeResult(cluster_index, record, e))
                if policy is ErrorPolicy.Abort:
                    log.error(f"Aborting after failure of {record.name}: {e}")
                    return results
                log.warning(f"Continuing after failure of {record.name}")
                continue

            results.append(NodeResult(cluster_index, record))
            log.success(f"Machine id <{record.instance_id}>, ip address <{record.private_ip_address}>")
            if i < len(records):
                log.info("----------------------------------")

    log.info("================================================================")
    return results


def as_host_specs(results: List[NodeResult]) -> List[HostSpec]:
    return [HostSpec(name=result.record.name,
                     instance_id=result.record.instance_id,
                     region=result.record.region,
                     private_ip=result.record.private_ip_address,
                     public_ip=result.record.public_ip_address,
                     cluster=result.cluster_index,
                     state=result.record.state)
            for result in results if result.ok]
