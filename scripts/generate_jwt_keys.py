#!/usr/bin/env python3
"""Generate JWT signing keys for local development.

WARNING: These keys should ONLY be used for development.
Production keys are injected through the environment (JWT_PUBLIC_KEY,
JWT_PRIVATE_KEY) by the deployment's secret store.

Usage:
    python scripts/generate_jwt_keys.py [RS256|ES256] [--save]
"""

import argparse
import os

from finops.infrastructure.auth.jwt_service import JWTKeyGenerator

ENV_FILE = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env.development")

GENERATORS = {
    "RS256": JWTKeyGenerator.generate_rsa_keys,
    "ES256": JWTKeyGenerator.generate_ec_keys,
}


def save_env(public_key: str, private_key: str, algorithm: str, path: str = ENV_FILE) -> None:
    """Merge the keys into a dotenv file, PEM newlines escaped."""
    existing_env = {}
    if os.path.exists(path):
        with open(path, "r") as f:
            for line in f:
                if "=" in line and not line.startswith("#"):
                    key, value = line.strip().split("=", 1)
                    existing_env[key] = value

    existing_env["JWT_PUBLIC_KEY"] = public_key.replace("\n", "\\n")
    existing_env["JWT_PRIVATE_KEY"] = private_key.replace("\n", "\\n")
    existing_env["JWT_ALGORITHM"] = algorithm

    with open(path, "w") as f:
        f.write("# Auto-generated JWT keys for FinOps development\n")
        f.write("# DO NOT COMMIT THIS FILE\n\n")
        for key, value in existing_env.items():
            f.write(f"{key}={value}\n")


def main():
    parser = argparse.ArgumentParser(description="Generate development JWT keys")
    parser.add_argument("algorithm", nargs="?", default="RS256", choices=sorted(GENERATORS))
    parser.add_argument("--save", action="store_true", help=f"Write the keys to {ENV_FILE}")
    args = parser.parse_args()

    public_key, private_key = GENERATORS[args.algorithm]()

    print("=" * 60)
    print(f"Generated {args.algorithm} Keys - DEVELOPMENT ONLY")
    print("=" * 60)

    print("\n### PUBLIC KEY (JWT_PUBLIC_KEY) ###")
    print(public_key)

    print("\n### PRIVATE KEY (JWT_PRIVATE_KEY) ###")
    print(private_key)

    if args.save:
        save_env(public_key, private_key, args.algorithm)
        print(f"\nKeys saved to {ENV_FILE}")
        print("Remember to add .env.development to .gitignore!")


if __name__ == "__main__":
    main()
