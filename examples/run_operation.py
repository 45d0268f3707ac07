"""Example: log in with an SSH key and list packages."""

import logging
from pathlib import Path

from graniteclient import ClientConfig, CredentialStore, PrivateKeyCredential, execute


def list_packages(client):
    response = client.request("GET", "/crx/packmgr/service/.json/", params={"cmd": "ls"})
    response.raise_for_status()
    return response.json()


def main():
    logging.basicConfig(level=logging.INFO)

    config = ClientConfig(
        base_url="http://localhost:4502",
        request_timeout=30000,
        service_timeout=60000,
    )
    credentials = CredentialStore(keys=[
        PrivateKeyCredential(
            username="admin",
            private_key=Path("~/.ssh/id_rsa").expanduser().read_text(),
            passphrase=None,
            domain="localhost",
        ),
    ])

    packages = execute(list_packages, config, credentials=credentials)
    for package in packages.get("results", []):
        print(f"{package.get('group')}:{package.get('name')}:{package.get('version')}")


if __name__ == "__main__":
    main()
