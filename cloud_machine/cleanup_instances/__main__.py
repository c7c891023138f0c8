import argparse
import sys
from collections import defaultdict
from typing import Callable, Dict, List

from dotenv import load_dotenv
from loguru import logger

from ..aws_provider.client_factory import AwsComputeProvider
from ..create_instances.errors import ProvisionError
from ..create_instances.instance_lifecycle import reboot, terminate
from ..create_instances.instance_record import InstanceRecord
from ..host_spec import HostSpec, load_hosts
from ..provider_interface import IComputeProvider


def group_by_region(hosts: List[HostSpec]) -> Dict[str, List[HostSpec]]:
    groups: Dict[str, List[HostSpec]] = defaultdict(list)
    for host in hosts:
        groups[host.region].append(host)
    return groups


def cleanup_hosts(hosts: List[HostSpec], provider_for_region: Callable[[str], IComputeProvider], *, action=terminate) -> List[HostSpec]:
    """Apply ``action`` to every host and return the hosts it failed for."""
    failed = []
    for region_id, region_hosts in group_by_region(hosts).items():
        logger.info(f"Cleaning {len(region_hosts)} instances in region {region_id}")
        provider = provider_for_region(region_id)
        for host in region_hosts:
            record = InstanceRecord(name=host.name, region=host.region, instance_id=host.instance_id)
            try:
                action(provider, record)
            except ProvisionError as e:
                e.bind_record(record.name, record.instance_id)
                logger.error(f"{e}")
                failed.append(host)
    return failed


def confirm(message: str, assume_yes: bool) -> bool:
    logger.warning(message)
    if assume_yes:
        logger.info("Proceeding due to --yes flag")
        return True
    resp = input("Proceed anyway? [y/N]: ").strip().lower()
    return resp in ("y", "yes")


if __name__ == "__main__":
    load_dotenv()

    parser = argparse.ArgumentParser(description="Terminate or reboot the instances listed in a hosts file")
    parser.add_argument("-i", "--input-json", type=str, default="./hosts.json", help="Hosts file written by create_instances")
    parser.add_argument("--reboot", action="store_true", help="Reboot the instances instead of terminating them")
    parser.add_argument("-y", "--yes", action="store_true", help="Assume yes to confirmation prompt and proceed")
    args = parser.parse_args()

    from utils.logger import configure_logger
    configure_logger()

    try:
        hosts = load_hosts(args.input_json)
    except FileNotFoundError:
        logger.error(f"{args.input_json} not found, aborting")
        sys.exit(1)

    verb = "reboot" if args.reboot else "terminate"
    if not confirm(f"About to {verb} {len(hosts)} instances from {args.input_json}", args.yes):
        logger.info("Aborting cleanup due to user cancellation")
        sys.exit(1)

    failed = cleanup_hosts(hosts, AwsComputeProvider.new, action=reboot if args.reboot else terminate)
    if failed:
        logger.error(f"{verb.capitalize()} failed for {len(failed)} instances")
        sys.exit(1)
    logger.success(f"Cleanup of {len(hosts)} instances done")
