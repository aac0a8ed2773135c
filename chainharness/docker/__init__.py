"""Docker Engine client, one-shot containers, ports, wallets, volume ownership and volume files."""