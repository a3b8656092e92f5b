# src/site_auditor/services/technology_catalog.py
"""
Static fingerprint table consumed by TechnologyDetectionService.
Built once at import time and never mutated afterwards.
"""
import re
from dataclasses import dataclass, field
from typing import Pattern, Tuple


@dataclass(frozen=True)
class TechnologyPattern:
    name: str
    category: str
    homepage: str
    html: Tuple[Pattern, ...] = field(default_factory=tuple)
    script: Tuple[Pattern, ...] = field(default_factory=tuple)
    meta: Tuple[Pattern, ...] = field(default_factory=tuple)
    # (lower-case header name, value pattern); only present headers are tested
    headers: Tuple[Tuple[str, Pattern], ...] = field(default_factory=tuple)


def _rx(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _hdr(**patterns: str) -> Tuple[Tuple[str, Pattern], ...]:
    return tuple((name.replace('_', '-'), re.compile(p, re.IGNORECASE)) for name, p in patterns.items())


TECHNOLOGY_CATALOG: Tuple[TechnologyPattern, ...] = (
    # --- CMS & E-commerce ---
    TechnologyPattern("WordPress", "CMS", "https://wordpress.org",
                      html=_rx(r"wp-content", r"wp-includes"), meta=_rx(r"wordpress")),
    TechnologyPattern("Shopify", "E-commerce", "https://shopify.com",
                      html=_rx(r"cdn\.shopify\.com", r"shopify"), headers=_hdr(x_shopify_stage=r".*")),
    TechnologyPattern("WooCommerce", "E-commerce", "https://woocommerce.com",
                      html=_rx(r"woocommerce"), script=_rx(r"wc-")),
    TechnologyPattern("Magento", "E-commerce", "https://magento.com",
                      html=_rx(r"Mage\.Cookies"), script=_rx(r"mage")),

    # --- JavaScript frameworks & libraries ---
    TechnologyPattern("React", "JavaScript Framework", "https://reactjs.org",
                      html=_rx(r"react", r"__react", r"data-reactroot", r"data-reactid"),
                      script=_rx(r"react\..*\.js", r"react-dom")),
    TechnologyPattern("Vue.js", "JavaScript Framework", "https://vuejs.org",
                      html=_rx(r"vue", r"data-v-", r"v-cloak"), script=_rx(r"vue\..*\.js")),
    TechnologyPattern("Angular", "JavaScript Framework", "https://angular.io",
                      html=_rx(r"ng-", r"data-ng-"), script=_rx(r"angular\..*\.js")),
    TechnologyPattern("Next.js", "JavaScript Framework", "https://nextjs.org",
                      html=_rx(r"__next", r"_next"), script=_rx(r"_next/static")),
    TechnologyPattern("Nuxt.js", "JavaScript Framework", "https://nuxtjs.org",
                      html=_rx(r"__nuxt"), script=_rx(r"_nuxt")),
    TechnologyPattern("Svelte", "JavaScript Framework", "https://svelte.dev",
                      html=_rx(r"svelte"), script=_rx(r"svelte")),
    TechnologyPattern("jQuery", "JavaScript Library", "https://jquery.com",
                      script=_rx(r"jquery[.-]")),
    TechnologyPattern("Bootstrap", "CSS Framework", "https://getbootstrap.com",
                      html=_rx(r"bootstrap"), script=_rx(r"bootstrap")),
    TechnologyPattern("Tailwind CSS", "CSS Framework", "https://tailwindcss.com",
                      html=_rx(r"tailwind")),

    # --- Analytics & tag managers ---
    TechnologyPattern("Google Analytics", "Analytics", "https://analytics.google.com",
                      html=_rx(r"UA-\d+-\d+", r"G-[A-Z0-9]+"),
                      script=_rx(r"google-analytics\.com/analytics\.js", r"googletagmanager\.com/gtag")),
    TechnologyPattern("Google Tag Manager", "Tag Manager", "https://tagmanager.google.com",
                      html=_rx(r"GTM-[A-Z0-9]+"), script=_rx(r"googletagmanager\.com/gtm\.js")),
    TechnologyPattern("Facebook Pixel", "Analytics", "https://facebook.com",
                      script=_rx(r"connect\.facebook\.net", r"fbevents\.js")),
    TechnologyPattern("Hotjar", "Analytics", "https://hotjar.com",
                      script=_rx(r"static\.hotjar\.com")),

    # --- Payments ---
    TechnologyPattern("Stripe", "Payment Processor", "https://stripe.com",
                      script=_rx(r"js\.stripe\.com")),
    TechnologyPattern("PayPal", "Payment Processor", "https://paypal.com",
                      html=_rx(r"paypal"), script=_rx(r"paypal")),

    # --- CDN, servers & hosting ---
    TechnologyPattern("Cloudflare", "CDN", "https://cloudflare.com",
                      headers=_hdr(server=r"cloudflare", cf_ray=r".*")),
    TechnologyPattern("Amazon CloudFront", "CDN", "https://aws.amazon.com/cloudfront",
                      headers=_hdr(x_amz_cf_id=r".*", via=r"cloudfront")),
    TechnologyPattern("Nginx", "Web Server", "https://nginx.org",
                      headers=_hdr(server=r"nginx")),
    TechnologyPattern("Apache", "Web Server", "https://apache.org",
                      headers=_hdr(server=r"apache")),
    TechnologyPattern("Vercel", "Hosting", "https://vercel.com",
                      headers=_hdr(server=r"vercel", x_vercel_id=r".*")),
    TechnologyPattern("Netlify", "Hosting", "https://netlify.com",
                      headers=_hdr(server=r"netlify", x_nf_request_id=r".*")),

    # --- Website builders & CMS ---
    TechnologyPattern("Webflow", "Website Builder", "https://webflow.com",
                      html=_rx(r"webflow"), meta=_rx(r"webflow")),
    TechnologyPattern("Wix", "Website Builder", "https://wix.com",
                      html=_rx(r"wix\.com"), headers=_hdr(x_wix_request_id=r".*")),
    TechnologyPattern("Squarespace", "Website Builder", "https://squarespace.com",
                      html=_rx(r"squarespace"), meta=_rx(r"squarespace")),
    TechnologyPattern("Drupal", "CMS", "https://drupal.org",
                      html=_rx(r"drupal"), headers=_hdr(x_drupal_cache=r".*", x_generator=r"drupal")),
    TechnologyPattern("Joomla", "CMS", "https://joomla.org",
                      html=_rx(r"joomla"), meta=_rx(r"joomla")),

    # --- Marketing & support ---
    TechnologyPattern("HubSpot", "Marketing Automation", "https://hubspot.com",
                      script=_rx(r"js\.hs-scripts\.com", r"hubspot")),
    TechnologyPattern("Mailchimp", "Email Marketing", "https://mailchimp.com",
                      html=_rx(r"mailchimp"), script=_rx(r"mailchimp")),
    TechnologyPattern("Intercom", "Customer Support", "https://intercom.com",
                      script=_rx(r"widget\.intercom\.io")),
    TechnologyPattern("Zendesk", "Customer Support", "https://zendesk.com",
                      script=_rx(r"zendesk")),

    # --- More JavaScript frameworks ---
    TechnologyPattern("Astro", "JavaScript Framework", "https://astro.build",
                      html=_rx(r"astro-", r"data-astro-"), meta=_rx(r"astro")),
    TechnologyPattern("Remix", "JavaScript Framework", "https://remix.run",
                      html=_rx(r"remix"), script=_rx(r"remix")),
    TechnologyPattern("SolidJS", "JavaScript Framework", "https://solidjs.com",
                      script=_rx(r"solid-js", r"solidjs")),
    TechnologyPattern("Gatsby", "JavaScript Framework", "https://gatsbyjs.com",
                      html=_rx(r"gatsby"), script=_rx(r"gatsby"), meta=_rx(r"gatsby")),
    TechnologyPattern("Qwik", "JavaScript Framework", "https://qwik.builder.io",
                      html=_rx(r"q:base", r"q:container")),
    TechnologyPattern("Preact", "JavaScript Framework", "https://preactjs.com",
                      script=_rx(r"preact")),
    TechnologyPattern("Alpine.js", "JavaScript Framework", "https://alpinejs.dev",
                      html=_rx(r"x-data", r"x-show", r"x-bind"), script=_rx(r"alpine")),
    TechnologyPattern("HTMX", "JavaScript Library", "https://htmx.org",
                      html=_rx(r"hx-get", r"hx-post", r"hx-swap"), script=_rx(r"htmx")),
    TechnologyPattern("Ember.js", "JavaScript Framework", "https://emberjs.com",
                      html=_rx(r"ember"), script=_rx(r"ember")),
    TechnologyPattern("Backbone.js", "JavaScript Framework", "https://backbonejs.org",
                      script=_rx(r"backbone")),

    # --- Backend frameworks ---
    TechnologyPattern("Laravel", "Backend Framework", "https://laravel.com",
                      html=_rx(r"laravel"), headers=_hdr(x_powered_by=r"laravel")),
    TechnologyPattern("Django", "Backend Framework", "https://djangoproject.com",
                      html=_rx(r"django"), headers=_hdr(x_powered_by=r"django")),
    TechnologyPattern("Ruby on Rails", "Backend Framework", "https://rubyonrails.org",
                      html=_rx(r"csrf-token"), headers=_hdr(x_powered_by=r"ruby")),
    TechnologyPattern("Express.js", "Backend Framework", "https://expressjs.com",
                      headers=_hdr(x_powered_by=r"express")),
    TechnologyPattern("FastAPI", "Backend Framework", "https://fastapi.tiangolo.com",
                      headers=_hdr(server=r"uvicorn")),

    # --- Headless CMS & builders ---
    TechnologyPattern("Framer", "Website Builder", "https://framer.com",
                      html=_rx(r"framer"), meta=_rx(r"framer")),
    TechnologyPattern("Ghost", "CMS", "https://ghost.org",
                      html=_rx(r"ghost"), meta=_rx(r"ghost")),
    TechnologyPattern("Contentful", "CMS", "https://contentful.com",
                      html=_rx(r"contentful"), script=_rx(r"contentful")),
    TechnologyPattern("Sanity", "CMS", "https://sanity.io",
                      html=_rx(r"sanity"), script=_rx(r"sanity")),

    # --- Product analytics ---
    TechnologyPattern("Plausible", "Analytics", "https://plausible.io",
                      script=_rx(r"plausible\.io")),
    TechnologyPattern("Matomo", "Analytics", "https://matomo.org",
                      script=_rx(r"matomo", r"piwik")),
    TechnologyPattern("Amplitude", "Analytics", "https://amplitude.com",
                      script=_rx(r"amplitude")),
    TechnologyPattern("Segment", "Analytics", "https://segment.com",
                      script=_rx(r"segment", r"analytics\.js")),
    TechnologyPattern("Mixpanel", "Analytics", "https://mixpanel.com",
                      script=_rx(r"mixpanel")),
    TechnologyPattern("PostHog", "Analytics", "https://posthog.com",
                      script=_rx(r"posthog")),

    # --- More CDNs ---
    TechnologyPattern("Fastly", "CDN", "https://fastly.com",
                      headers=_hdr(x_served_by=r"fastly", fastly_io_info=r".*")),
    TechnologyPattern("Akamai", "CDN", "https://akamai.com",
                      headers=_hdr(server=r"akamai", x_akamai_request_id=r".*")),
    TechnologyPattern("BunnyCDN", "CDN", "https://bunny.net",
                      headers=_hdr(server=r"bunnycdn")),

    # --- Backend as a service & auth ---
    TechnologyPattern("Supabase", "Backend as a Service", "https://supabase.com",
                      script=_rx(r"supabase")),
    TechnologyPattern("Firebase", "Backend as a Service", "https://firebase.google.com",
                      script=_rx(r"firebase")),
    TechnologyPattern("Clerk", "Authentication", "https://clerk.com",
                      script=_rx(r"clerk")),
    TechnologyPattern("Auth0", "Authentication", "https://auth0.com",
                      script=_rx(r"auth0")),

    # --- Error tracking & chat ---
    TechnologyPattern("Sentry", "Error Tracking", "https://sentry.io",
                      script=_rx(r"sentry")),
    TechnologyPattern("LogRocket", "Error Tracking", "https://logrocket.com",
                      script=_rx(r"logrocket")),
    TechnologyPattern("Crisp", "Customer Support", "https://crisp.chat",
                      script=_rx(r"crisp\.chat")),
    TechnologyPattern("Tawk.to", "Customer Support", "https://tawk.to",
                      script=_rx(r"tawk\.to")),

    # --- More e-commerce ---
    TechnologyPattern("BigCommerce", "E-commerce", "https://bigcommerce.com",
                      html=_rx(r"bigcommerce"), meta=_rx(r"bigcommerce")),
    TechnologyPattern("PrestaShop", "E-commerce", "https://prestashop.com",
                      html=_rx(r"prestashop"), meta=_rx(r"prestashop")),
    TechnologyPattern("OpenCart", "E-commerce", "https://opencart.com",
                      html=_rx(r"opencart"), script=_rx(r"opencart")),
    TechnologyPattern("Salesforce Commerce Cloud", "E-commerce", "https://salesforce.com",
                      html=_rx(r"demandware"), script=_rx(r"demandware")),
)
