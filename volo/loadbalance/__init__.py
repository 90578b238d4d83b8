"""Load balancing: the policy interface, weighted random balancing and the retrying service layer."""