"""Container Event Reconciler (CER).

Long-running watcher for a Dokku-style hosting platform that:
 - tracks running, platform-managed containers and their data-plane address
 - rebuilds an app when Docker exhausts a container's restart budget
 - rebuilds the proxy config when a known container comes back on a new address

State is kept in memory and rebuilt from the Docker daemon on every start.
"""
