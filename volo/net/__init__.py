"""Addresses, IP stack probing, connections, dialling and listening."""