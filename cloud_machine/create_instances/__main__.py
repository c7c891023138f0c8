import argparse
import sys

from dotenv import load_dotenv
from loguru import logger

from ..aws_provider.client_factory import AwsComputeProvider
from ..host_spec import save_hosts
from .cluster_orchestrator import as_host_specs, provision_clusters
from .errors import ClusterConfigError
from .instance_lifecycle import DEFAULT_POLL_INTERVAL, WaitOptions
from .machine_config import load_clusters
from .types import ErrorPolicy


def make_parser():
    parser = argparse.ArgumentParser(description="Create the instances described by a cluster file")
    parser.add_argument(
        "cluster_file",
        type=str,
        help="Cluster file (TOML) listing machine files and node counts"
    )
    parser.add_argument(
        "-o", "--output-json",
        type=str,
        default="./hosts.json",
        help="Path of the hosts file written after provisioning"
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep provisioning the remaining nodes after a node fails"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Maximum seconds to wait for each instance to be running (default: no limit)"
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help="Seconds between two instance state checks"
    )
    return parser


def main(argv=None) -> int:
    args = make_parser().parse_args(argv)

    try:
        cluster_file, machines = load_clusters(args.cluster_file)
    except ClusterConfigError as e:
        logger.error(f"{e}")
        return 1

    policy = ErrorPolicy.Continue if args.continue_on_error else ErrorPolicy.Abort
    wait = WaitOptions(poll_interval=args.poll_interval, timeout=args.timeout)

    logger.info(f"Planning {cluster_file.total_nodes} nodes in {len(machines)} clusters")
    results = provision_clusters(machines, cluster_file.default, AwsComputeProvider.new, policy=policy, wait=wait)

    save_hosts(as_host_specs(results), args.output_json)
    failed = [result for result in results if not result.ok]
    if failed:
        for result in failed:
            logger.error(f"Cluster {result.cluster_index} node failed: {result.error}")
        logger.error(f"{len(failed)} nodes failed, running hosts written to {args.output_json}")
        return 1

    logger.success(f"All nodes are running, hosts written to {args.output_json}")
    return 0


if __name__ == "__main__":
    load_dotenv()

    from utils.logger import configure_logger
    configure_logger()

    sys.exit(main())
