"""
Authentication agent artifact.

The server is launched with authlib-injector as a Java agent. The jar is
downloaded once into the meta directory and reused on every later run.
"""

import logging
import os
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)


def ensure_agent(path: Path, url: str, client: httpx.Client = None) -> bool:
    """
    Download the agent jar to ``path`` unless it is already there.

    Returns:
        True if the agent is present afterwards.
    """
    path = Path(path)
    if path.is_file():
        logger.info(f"Authlib Injector present: {path.name}")
        return True

    logger.info("Downloading Authlib Injector...")
    path.parent.mkdir(parents=True, exist_ok=True)
    partial = path.with_name(path.name + ".part")

    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, timeout=60.0)

    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
        os.replace(partial, path)

    except httpx.HTTPStatusError as e:
        logger.error(f"Failed to download Authlib Injector: HTTP {e.response.status_code}")
        return False
    except (httpx.HTTPError, OSError) as e:
        logger.error(f"Failed to download Authlib Injector: {e}")
        return False
    finally:
        if own_client:
            client.close()
        if partial.exists():
            partial.unlink()

    logger.info("Download complete.")
    return True
